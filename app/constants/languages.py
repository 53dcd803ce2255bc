"""Languages accepted as a post's declared original language."""

ENGLISH = 'English'

SUPPORTED_LANGUAGES = {
    'English',
    'Sinhala',
    'Tamil',
    'Hindi',
    'Bengali',
    'Urdu',
    'Arabic',
    'Chinese',
    'Japanese',
    'Korean',
    'Thai',
    'Vietnamese',
    'Indonesian',
    'Malay',
    'French',
    'German',
    'Spanish',
    'Portuguese',
    'Italian',
    'Dutch',
    'Russian',
    'Turkish',
    'Persian',
    'Nepali',
}


def is_english(language) -> bool:
    return not language or language.strip().lower() in ('english', 'en')
