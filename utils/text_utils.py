"""
Text Utilities
Random strings and draft entry identifiers
"""
import itertools
import random
import string


_entry_counter = itertools.count(1)


def get_random_string(length: int, alphabet: str = string.ascii_lowercase + string.digits) -> str:
    """
    Generate random string

    Args:
        length: Length of string to generate
        alphabet: Characters to draw from (lowercase base36 by default)

    Returns:
        Random string
    """
    return ''.join(random.choice(alphabet) for _ in range(length))


def generate_entry_id() -> str:
    """
    Identifier for a draft ingredient entry

    The counter part keeps ids unique within the process, so an id is never
    handed out twice.
    """
    return f"ing-{next(_entry_counter)}-{get_random_string(7)}"
