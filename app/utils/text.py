"""Text utilities for product fields and search input."""
import re


_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F-\x9F]')


def clean_text(text: str) -> str:
    """Normalize multi-line text such as a product description.

    Removes control characters except newlines, carriage returns and tabs,
    collapses runs of spaces, caps blank lines at one paragraph break and
    trims each line.

    Examples:
        >>> clean_text("  Stoneware mug \\n\\n\\n\\n350ml ")
        'Stoneware mug\\n\\n350ml'
        >>> clean_text(None)
        ''
    """
    if text is None:
        return ""

    text = _CONTROL_CHARS.sub('', str(text))
    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    return '\n'.join(line.strip() for line in text.split('\n')).strip()


def clean_line(text: str) -> str:
    """Normalize single-line text such as a product name or category.

    Examples:
        >>> clean_line("  Blue \\t Mug\\n")
        'Blue Mug'
    """
    if text is None:
        return ""

    text = _CONTROL_CHARS.sub('', str(text))
    return re.sub(r'\s+', ' ', text).strip()


def literal_pattern(query: str) -> str:
    """Regex that matches ``query`` as a literal substring.

    Search input is user text, not a pattern, so metacharacters are escaped.

    Examples:
        >>> literal_pattern("c++ (beta)")
        'c\\\\+\\\\+\\\\ \\\\(beta\\\\)'
    """
    return re.escape(query)
