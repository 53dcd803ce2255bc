"""Vote toggling.

A user holds at most one vote per post. Voting the same direction twice
removes the vote; voting the other direction flips it in place.
"""

from dataclasses import dataclass
import logging
from typing import Optional

from flask import current_app
from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError

from app import db
from app.errors import ConflictError, NotFoundError
from app.models import Post, Vote, VoteType

logger = logging.getLogger(__name__)


class VoteOperation:
    CREATED = 'created'
    REMOVED = 'removed'
    UPDATED = 'updated'


@dataclass
class VoteResult:
    operation: str
    upvotes: int
    downvotes: int
    user_vote: Optional[str]

    def to_dict(self):
        return {
            'upvotes': self.upvotes,
            'downvotes': self.downvotes,
            'userVote': self.user_vote,
            'success': True,
        }


def count_votes(post_id):
    """Fresh ``(upvotes, downvotes)`` for one post, read from the database."""
    rows = db.session.query(Vote.type, func.count(Vote.id)).filter(
        Vote.post_id == post_id
    ).group_by(Vote.type).all()
    counts = dict(rows)
    return counts.get(VoteType.UP, 0), counts.get(VoteType.DOWN, 0)


def get_user_vote(post_id, user_id):
    if not user_id:
        return None
    vote = Vote.query.filter_by(post_id=post_id, user_id=user_id).first()
    return vote.type if vote else None


def _begin_vote_transaction():
    """Apply isolation level and statement timeout where the database supports them."""
    session = db.session
    dialect = db.engine.dialect.name
    if dialect == 'sqlite' or session.in_transaction():
        return

    session.connection(execution_options={
        'isolation_level': current_app.config['VOTE_ISOLATION_LEVEL']
    })
    if dialect == 'postgresql':
        timeout_ms = int(current_app.config['VOTE_TRANSACTION_TIMEOUT_MS'])
        session.execute(text(f'SET LOCAL statement_timeout = {timeout_ms}'))


def toggle_vote(post_id, user_id, vote_type) -> VoteResult:
    """Create, remove or flip ``user_id``'s vote on ``post_id`` in one transaction.

    Raises:
        NotFoundError: the post does not exist
        ConflictError: a concurrent request created the same vote
    """
    try:
        _begin_vote_transaction()

        if db.session.get(Post, post_id) is None:
            raise NotFoundError('Post not found', code='POST_NOT_FOUND')

        existing = Vote.query.filter_by(user_id=user_id, post_id=post_id).first()

        if existing is None:
            db.session.add(Vote(user_id=user_id, post_id=post_id, type=vote_type))
            operation, user_vote = VoteOperation.CREATED, vote_type
        elif existing.type == vote_type:
            db.session.delete(existing)
            operation, user_vote = VoteOperation.REMOVED, None
        else:
            existing.type = vote_type
            operation, user_vote = VoteOperation.UPDATED, vote_type

        db.session.flush()
        upvotes, downvotes = count_votes(post_id)
        db.session.commit()

    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"[VOTE] Duplicate vote by {user_id} on {post_id}: {e}")
        raise ConflictError('Vote already recorded', code='DUPLICATE_VOTE')
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"[VOTE] {operation} {vote_type} by {user_id} on {post_id} ({upvotes} up / {downvotes} down)")
    return VoteResult(operation, upvotes, downvotes, user_vote)
