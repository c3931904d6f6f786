"""External collaborators - clock and escrow vault."""
