"""作用域事务封装

所有写操作都在 transaction() 作用域内执行：
正常退出时提交，任何异常（包括取消）时回滚后重新抛出。

多个协程共享同一个 aiosqlite 连接，连接级事务不能交错，
因此作用域持有 StoreGroup 的写锁，直到提交或回滚完成。
该锁只覆盖单次写事务，不覆盖读取与 diff 阶段。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite


@asynccontextmanager
async def transaction(
    conn: aiosqlite.Connection,
    write_lock: asyncio.Lock,
) -> AsyncIterator[aiosqlite.Connection]:
    """获取一个存储事务作用域，保证每条退出路径都提交或回滚

    Args:
        conn: 数据库连接
        write_lock: 序列化同一连接上事务作用域的锁

    Yields:
        当前事务使用的连接
    """
    async with write_lock:
        try:
            yield conn
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise
