"""CLI 测试 -- python -m taskhub.core"""

import sys

import pytest
from taskhub.core import __main__ as cli


class TestCli:
    async def test_init_db_creates_file(self, tmp_path, monkeypatch, capsys):
        db_path = tmp_path / "cli" / "taskhub.db"
        monkeypatch.setenv("TASKHUB_DB_PATH", str(db_path))

        await cli.init_database()

        assert db_path.exists()
        assert "初始化完成" in capsys.readouterr().out

    async def test_stats_on_empty_db(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("TASKHUB_DB_PATH", str(tmp_path / "stats.db"))

        await cli.print_stats()

        out = capsys.readouterr().out
        assert "项目数: 0" in out
        assert "任务数: 0" in out

    def test_unknown_command_exits(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["taskhub.core", "bogus"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1
        assert "未知命令" in capsys.readouterr().out

    def test_missing_command_exits(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["taskhub.core"])
        with pytest.raises(SystemExit):
            cli.main()
