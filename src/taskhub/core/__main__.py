"""CLI 入口模块 -- python -m taskhub.core <command>

支持的命令：
  init-db  初始化 SQLite 数据库（建表 + 索引）
  stats    打印项目与任务数量
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m taskhub.core <command>")
        print("命令:")
        print("  init-db  初始化 SQLite 数据库")
        print("  stats    打印项目与任务数量")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "stats":
        asyncio.run(print_stats())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, stats")
        sys.exit(1)


async def init_database() -> None:
    """执行数据库初始化"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.close()
    print("初始化完成")


async def print_stats() -> None:
    """打印项目与任务数量"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        projects = await store_group.project_store.list_projects()
        tasks = await store_group.task_store.list_tasks()
        print(f"项目数: {len(projects)}")
        print(f"任务数: {len(tasks)}")
    finally:
        await store_group.close()


if __name__ == "__main__":
    main()
