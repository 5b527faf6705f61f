"""Shannon entropy scoring and false-positive filtering for secret candidates.

The generic sweep flags any long base64-alphabet token whose character
distribution is random enough, after discarding shapes that are usually not
secrets: hex digests, base64 UUIDs, numeric IDs and product codes.
"""

import math
import re
from collections import Counter
from collections.abc import Iterator

# Tokens considered by the generic sweep
CANDIDATE_TOKEN = re.compile(r"[a-zA-Z0-9+/]{20,}={0,2}")

# Shapes that look random but are rarely credentials
FALSE_POSITIVE_SHAPES: list[tuple[str, re.Pattern]] = [
    ("md5_hash", re.compile(r"^[0-9a-f]{32}$")),
    ("sha1_hash", re.compile(r"^[0-9a-f]{40}$")),
    ("sha256_hash", re.compile(r"^[0-9a-f]{64}$")),
    ("base64_uuid", re.compile(r"^[A-Za-z0-9+/]{22}={0,2}$")),
    ("long_number", re.compile(r"^[0-9]{10,}$")),
    ("product_code", re.compile(r"^[A-Z]{2,}[0-9]{2,}[A-Z0-9]*$")),
]


def shannon_entropy(value: str) -> float:
    """Calculate Shannon entropy of a string's character distribution.

    Args:
        value: String to analyze

    Returns:
        Entropy in bits per character (0.0 for empty input)
    """
    if not value:
        return 0.0

    length = len(value)
    entropy = 0.0
    for count in Counter(value).values():
        probability = count / length
        entropy -= probability * math.log2(probability)

    return entropy


def false_positive_shape(token: str) -> str | None:
    """Name of the first false-positive shape the token matches, if any."""
    for name, shape in FALSE_POSITIVE_SHAPES:
        if shape.match(token):
            return name
    return None


def is_likely_not_secret(token: str) -> bool:
    """Check whether a token has a known non-secret shape."""
    return false_positive_shape(token) is not None


def find_high_entropy_tokens(line: str, threshold: float) -> Iterator[tuple[int, str, float]]:
    """Sweep a line for high-entropy tokens.

    Args:
        line: Single line of text
        threshold: Minimum entropy for a token to be reported

    Yields:
        (0-based offset, token, entropy) for each reportable token
    """
    for match in CANDIDATE_TOKEN.finditer(line):
        token = match.group(0)
        entropy = shannon_entropy(token)
        if entropy >= threshold and not is_likely_not_secret(token):
            yield match.start(), token, entropy
