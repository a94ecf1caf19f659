"""Session orchestration and audio switching for translated calls.

Every conversation has two legs (A = calling party, B = called party). Audio
captured on one leg is translated by that leg's adapter and played on the
other leg; it is never played back to the leg it came from.
"""
