"""
Column type classification and value pattern heuristics
"""

from typing import List, Sequence


NUMERIC_TYPES = ('int', 'integer', 'bigint', 'smallint', 'tinyint',
                 'decimal', 'numeric', 'float', 'double', 'real', 'number')
STRING_TYPES = ('varchar', 'char', 'text', 'string')

EMAIL_PATTERN = "email pattern"
PHONE_PATTERN = "phone pattern"
URL_PATTERN = "URL pattern"
TEXT_PATTERN = "text pattern"
NO_PATTERN = "no pattern detected"

PII_VOCABULARY = ['email', 'phone', 'ssn', 'social', 'address',
                  'name', 'first_name', 'last_name', 'password']


def is_numeric_type(data_type: str) -> bool:
    """Check whether a declared type names a numeric type"""
    data_type = (data_type or '').lower()
    return any(num_type in data_type for num_type in NUMERIC_TYPES)


def is_string_type(data_type: str) -> bool:
    """Check whether a declared type names a character type"""
    data_type = (data_type or '').lower()
    return any(str_type in data_type for str_type in STRING_TYPES)


def is_digits_only(value: str) -> bool:
    return bool(value) and all('0' <= char <= '9' for char in value)


def detect_pattern(samples: Sequence[str]) -> str:
    """Best-effort classification of sample values.

    Samples are checked in order and the first one matching a known shape
    decides the pattern: ``@`` means email, ten or more digits means phone,
    an ``http`` prefix means URL. When no sample matches, the column holds
    plain text.
    """
    if not samples:
        return NO_PATTERN

    for sample in samples:
        if '@' in sample:
            return EMAIL_PATTERN
        if len(sample) >= 10 and is_digits_only(sample):
            return PHONE_PATTERN
        if sample.startswith('http'):
            return URL_PATTERN

    return TEXT_PATTERN


def contains_any(value: str, vocabulary: List[str]) -> bool:
    """Case-insensitive substring match against a vocabulary"""
    value = (value or '').lower()
    return any(word.lower() in value for word in vocabulary)
