"""EchoBet - commit-reveal binary prediction market with pari-mutuel settlement."""

__version__ = "0.1.0"
