#!/usr/bin/env python3
"""Credit an asset to an account directly in the database."""

import asyncio
import sys

from dotenv import load_dotenv
load_dotenv()

from fusionswap.ledger.database import get_db, init_db
from fusionswap.ledger.repository import LedgerRepository


async def fund_account(account: str, asset: str, amount: int):
    await init_db()
    async with get_db() as session:
        repo = LedgerRepository(session)
        balance = await repo.deposit(account, asset, amount)

        print(f"Credited {amount} {asset} to {account}")
        print(f"New balance: {balance.amount} {asset}")


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print("Usage: python fund_account.py <account> <asset> <amount>")
        print("Example: python fund_account.py 0xmaker NATIVE 1000000")
        sys.exit(1)

    account = sys.argv[1]
    asset = sys.argv[2]
    amount = int(sys.argv[3])

    asyncio.run(fund_account(account, asset, amount))
