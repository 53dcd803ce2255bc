"""Routes package for the forum application."""


def register_routes(app):
    """Register all route blueprints with the application."""
    from .auth import auth_bp
    from .posts import posts_bp
    from .users import users_bp
    from .notifications import notifications_bp
    from .categories import categories_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')
    app.register_blueprint(categories_bp, url_prefix='/api/categories')
