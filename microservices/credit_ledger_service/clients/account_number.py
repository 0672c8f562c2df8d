"""
Account number generation.

Format: 4 random digits, the literal "00", then 12 random digits.
"""

import secrets


class RandomAccountNumberGenerator:
    """Implements AccountNumberGeneratorProtocol"""

    def generate(self) -> str:
        return f"{secrets.randbelow(10_000):04d}00{secrets.randbelow(10 ** 12):012d}"
