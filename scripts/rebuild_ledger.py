"""
Re-post every paid reimbursement and direct expense into the expense ledger.

Safe to run repeatedly; entries are keyed by (source_type, source_id).
Usage: python scripts/rebuild_ledger.py
"""

import sys
import os
import asyncio

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from logging_config import setup_logging
from routes.deps import get_ledger

setup_logging()

async def main():
    count = await get_ledger().rebuild()
    print(f"✅ Ledger rebuilt from {count} paid entities")

if __name__ == "__main__":
    asyncio.run(main())
