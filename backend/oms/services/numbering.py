from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


async def generate_document_number(db: AsyncSession, column, prefix: str) -> str:
    """prefix + yyyymmdd + daily sequence of at least 3 digits, e.g. SO20260105001"""
    date_str = datetime.now().strftime("%Y%m%d")
    head = f"{prefix}{date_str}"

    # string max would put ...1000 below ...999
    result = await db.execute(select(column).where(column.like(f"{head}%")))
    sequences = [
        int(number[len(head):])
        for number in result.scalars().all()
        if number[len(head):].isdigit()
    ]
    seq = max(sequences, default=0) + 1

    return f"{head}{seq:03d}"
