"""
Points Kernel

The ledger core of the recognition-and-rewards economy:
- Point accounts with a monthly giving allowance and a spendable balance
- Append-only ledger of signed point movements
- Budget-backed grants with an approval workflow
- Reward redemption
- Atomic, optimistically-locked transactions with bounded retry
"""

__version__ = "0.1.0"
