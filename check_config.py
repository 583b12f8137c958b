#!/usr/bin/env python3
"""
Script to check the system configuration
Run: python check_config.py
"""
import asyncio
from pathlib import Path

from app.core.config import settings
from app.storage import build_storage, FallbackStorage, SQLStorage

KNOWN_BACKENDS = ("memory", "file", "sql", "sql+file")


async def check_config():
    """Check the important settings and whether storage is reachable"""
    print("\n" + "="*60)
    print("🔍 CONFIGURATION CHECK")
    print("="*60)

    issues = []

    # Storage backend
    print("\n✓ Checking storage backend...")
    backend = settings.STORAGE_BACKEND.lower()
    if backend not in KNOWN_BACKENDS:
        issues.append(f"❌ STORAGE_BACKEND '{settings.STORAGE_BACKEND}' is not one of {', '.join(KNOWN_BACKENDS)}")
        print(f"   ❌ Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
    else:
        print(f"   ✅ STORAGE_BACKEND: {backend}")

    # Data directory (file cache)
    if backend in ("file", "sql+file"):
        print("\n✓ Checking data directory...")
        data_dir = Path(settings.DATA_DIR)
        if data_dir.exists() and not data_dir.is_dir():
            issues.append(f"❌ DATA_DIR {data_dir} exists and is not a directory")
            print(f"   ❌ {data_dir} is not a directory")
        else:
            print(f"   ✅ DATA_DIR: {data_dir.resolve()}")

    # Database URL
    if backend in ("sql", "sql+file"):
        print("\n✓ Checking Database URL...")
        if "+asyncpg" not in settings.DATABASE_URL and "+aiosqlite" not in settings.DATABASE_URL:
            issues.append("⚠️  DATABASE_URL should use an async driver (postgresql+asyncpg://...)")
            print("   ⚠️  DATABASE_URL does not name an async driver")
        print(f"   ✅ DATABASE_URL: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'OK'}")

        storage = build_storage(backend)
        sql_storage = storage.primary if isinstance(storage, FallbackStorage) else storage
        if isinstance(sql_storage, SQLStorage):
            reachable = await sql_storage.ping()
            if reachable:
                print("   ✅ Database reachable")
            elif backend == "sql+file":
                print("   ⚠️  Database unreachable, the app will run on the local cache")
            else:
                issues.append("❌ Database unreachable")
                print("   ❌ Database unreachable")
        await storage.close()

    # Environment
    print("\n✓ Checking environment...")
    print(f"   ✅ APP_ENV: {settings.APP_ENV}")
    print(f"   ✅ LOG_LEVEL: {settings.LOG_LEVEL}")
    print(f"   ✅ ACTING_USER_HEADER: {settings.ACTING_USER_HEADER}")

    # Summary
    print("\n" + "="*60)
    if issues:
        print("⚠️  PROBLEMS FOUND:")
        for issue in issues:
            print(f"   {issue}")
        print("\n💡 FIX:")
        print("   1. Check the .env file at the project root")
        print("   2. Make sure the database is running, or use STORAGE_BACKEND=file")
        return False
    print("✅ All settings look correct!")
    print("="*60 + "\n")
    return True


if __name__ == "__main__":
    asyncio.run(check_config())
