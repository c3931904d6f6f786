"""Replay of the protocol event log and store audits."""
