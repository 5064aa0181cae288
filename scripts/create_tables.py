import asyncio

from ltp_service.db.session import engine, Base
import ltp_service.db.models  # noqa: F401  registers RequestLog


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("request_logs table created/verified")


if __name__ == "__main__":
    asyncio.run(main())
