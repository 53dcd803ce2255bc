"""Category constants used by post classification.

Must stay in sync with the category seed data.
"""

# Categories offered to the AI classifier when the database has none
LEGACY_CATEGORIES = [
    'Business',
    'Design',
    'Career',
    'Construction',
    'Academic',
    'Informative',
    'Other',
]

DEFAULT_CATEGORY_NAME = 'Other'

# Keyword table for classification when the AI service is unavailable.
# Category name -> lowercase keywords (English, Sinhala, Tamil)
FALLBACK_KEYWORDS = {
    'Design': [
        'design', 'architecture', 'interior', 'sketch', 'aesthetic',
        'සැලසුම', 'නිර්මාණ', 'ගෘහ නිර්මාණ',
        'வடிவமைப்பு', 'கட்டிடக்கலை',
    ],
    'Business': [
        'business', 'company', 'budget', 'client', 'market', 'startup',
        'ව්‍යාපාර', 'සමාගම', 'අයවැය',
        'வணிகம்', 'நிறுவனம்',
    ],
    'Academic': [
        'academic', 'university', 'degree', 'student', 'research', 'study',
        'අධ්‍යාපන', 'විශ්වවිද්‍යාල', 'ශිෂ්‍ය', 'පර්යේෂණ',
        'கல்வி', 'பல்கலைக்கழகம்', 'மாணவர்',
    ],
    'Career': [
        'career', 'job', 'hiring', 'vacancy', 'interview', 'internship', 'freelance',
        'රැකියා', 'වෘත්තීය', 'පුහුණු',
        'வேலை', 'தொழில்',
    ],
}

# Confidence reported by the keyword fallback
FALLBACK_CONFIDENCE_MATCHED = 0.6
FALLBACK_CONFIDENCE_UNMATCHED = 0.3

# Confidence given to client-supplied AI suggestions for English posts
CLIENT_SUGGESTION_CONFIDENCE = 0.9
