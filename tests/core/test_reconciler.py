"""调和调度器测试"""

import os
import stat
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dotlink.core.data_structures import LinkSettings, Phase, Severity
from dotlink.core.exceptions import ErrorKind
from dotlink.core.interfaces.reporter import CollectingReporter
from dotlink.core.reconciler import Reconciler


@pytest.fixture
def settings(tmp_path):
    """home 与仓库均位于临时目录，仓库在 home 内"""
    home = tmp_path / "home"
    repo = home / "dotfiles"
    repo.mkdir(parents=True)
    return LinkSettings(
        repo_root=repo,
        home=home,
        config_home=home / ".config",
        data_home=home / ".local" / "share",
    )


@pytest.fixture
def reporter():
    return CollectingReporter()


@pytest.fixture
def reconciler(settings, reporter):
    return Reconciler(settings, reporter=reporter)


def add_package(repo: Path, name: str, links: str, files=None):
    """在仓库中创建一个子目录及其链接描述文件"""
    directory = repo / name
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "links").write_text(links)
    for filename, content in (files or {}).items():
        path = directory / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return directory


def add_exec(repo: Path, name: str, body: str):
    """在子目录中添加执行标记和脚本"""
    directory = repo / name
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "exec").write_text("")
    script = directory / "setup"
    script.write_text("#!/bin/sh\n" + body + "\n")
    script.chmod(stat.S_IRWXU)
    return script


class TestReconcileCreate:
    """创建阶段测试"""

    def test_creates_declared_links(self, reconciler, settings):
        repo = settings.repo_root
        add_package(repo, "shell", "shell/profile -> profile\n", {"profile": "p"})

        report = reconciler.reconcile()

        link = settings.home / "shell" / "profile"
        assert report.ok
        assert link.is_symlink()
        assert os.path.samefile(link, repo / "shell" / "profile")

    def test_second_run_is_idempotent(self, reconciler, settings):
        """测试再次运行先删除再重建，结果不变且无错误"""
        add_package(settings.repo_root, "shell", ".profile -> profile\n", {"profile": "p"})
        reconciler.reconcile()

        report = reconciler.reconcile()

        assert report.ok
        assert report.warnings == []
        assert [e.message for e in report.for_phase(Phase.DELETE)] == ["已删除"]
        assert (settings.home / ".profile").is_symlink()

    def test_removed_declaration_is_cleaned_up(self, reconciler, settings):
        """测试从描述文件移除的链接在下次运行时被删除"""
        repo = settings.repo_root
        add_package(repo, "shell", "a/b/.old -> profile\n", {"profile": "p"})
        reconciler.reconcile()
        (repo / "shell" / "links").write_text("")

        report = reconciler.reconcile()

        assert report.ok
        assert not (settings.home / "a").exists()
        messages = [e.message for e in report.for_phase(Phase.DELETE)]
        assert messages == ["已删除", "已清理空目录", "已清理空目录"]

    def test_existing_file_is_warning(self, reconciler, settings):
        """测试占位文件只产生警告"""
        add_package(settings.repo_root, "shell", ".profile -> profile\n", {"profile": "p"})
        (settings.home / ".profile").write_text("mine")

        report = reconciler.reconcile()

        assert report.ok
        assert report.exit_code == 0
        assert report.kinds() == [ErrorKind.SYMLINK_EXISTS]
        assert (settings.home / ".profile").read_text() == "mine"

    def test_missing_target_is_hard_error(self, reconciler, settings):
        add_package(settings.repo_root, "shell", ".profile -> missing\n")

        report = reconciler.reconcile()

        assert report.exit_code == 1
        assert report.kinds() == [ErrorKind.TARGET_NOT_FOUND]
        assert not (settings.home / ".profile").is_symlink()

    def test_syntax_error_skips_whole_file(self, reconciler, settings):
        """测试语法错误导致整个描述文件被跳过，其他文件继续处理"""
        repo = settings.repo_root
        add_package(repo, "a-broken", ".good -> f\nbad line\n", {"f": ""})
        add_package(repo, "b-fine", ".fine -> f\n", {"f": ""})

        report = reconciler.reconcile()

        assert report.exit_code == 1
        assert report.kinds() == [ErrorKind.INVALID_SYNTAX]
        assert "第 2 行" in report.hard_errors[0].message
        assert not (settings.home / ".good").exists()
        assert (settings.home / ".fine").is_symlink()

    def test_link_files_processed_in_directory_order(self, reconciler, settings, reporter):
        repo = settings.repo_root
        add_package(repo, "zsh", ".zshrc -> zshrc\n", {"zshrc": ""})
        add_package(repo, "bash", ".bashrc -> bashrc\n", {"bashrc": ""})

        reconciler.reconcile()

        created = [e.path.name for e in reporter.events if e.message == "已创建"]
        assert created == [".bashrc", ".zshrc"]

    def test_only_top_level_link_files(self, reconciler, settings):
        """测试嵌套目录中的描述文件不会被读取"""
        repo = settings.repo_root
        nested = repo / "shell" / "nested"
        nested.mkdir(parents=True)
        (nested / "links").write_text(".nested -> x\n")
        (repo / "links").write_text(".root -> x\n")

        assert reconciler.discover_link_files() == []

    def test_events_streamed_to_reporter(self, reconciler, settings, reporter):
        """测试事件与报告保持一致"""
        add_package(settings.repo_root, "shell", ".profile -> profile\n", {"profile": "p"})

        report = reconciler.reconcile()

        assert reporter.events == report.events


class TestReconcileExec:
    """执行阶段测试"""

    def test_scripts_run_after_links(self, reconciler, settings, monkeypatch):
        """测试脚本运行时链接已创建"""
        repo = settings.repo_root
        add_package(repo, "shell", ".profile -> profile\n", {"profile": "p"})
        add_exec(repo, "shell", 'test -L "$HOME_LINK" && touch ran')
        monkeypatch.setenv("HOME_LINK", str(settings.home / ".profile"))

        report = reconciler.reconcile()

        assert report.ok
        assert (repo / "shell" / "ran").exists()

    def test_non_zero_exit_is_warning(self, reconciler, settings):
        add_exec(settings.repo_root, "tool", "exit 2")

        report = reconciler.reconcile()

        assert report.exit_code == 0
        assert report.kinds() == [ErrorKind.SCRIPT_EXIT_STATUS]

    def test_not_executable_is_hard_error(self, reconciler, settings):
        script = add_exec(settings.repo_root, "tool", "exit 0")
        script.chmod(stat.S_IRUSR | stat.S_IWUSR)

        report = reconciler.reconcile()

        assert report.exit_code == 1
        assert report.kinds() == [ErrorKind.SCRIPT_NOT_EXECUTABLE]

    def test_failure_does_not_stop_other_scripts(self, reconciler, settings):
        repo = settings.repo_root
        add_exec(repo, "a", "exit 1")
        add_exec(repo, "b", "touch ran")

        reconciler.reconcile()

        assert (repo / "b" / "ran").exists()

    def test_no_exec_skips_scripts(self, reconciler, settings):
        repo = settings.repo_root
        add_exec(repo, "tool", "touch ran")

        report = reconciler.reconcile(run_exec=False)

        assert report.for_phase(Phase.EXEC) == []
        assert not (repo / "tool" / "ran").exists()


class TestPhaseOrdering:
    """阶段顺序测试"""

    def test_phases_run_in_order(self, settings, reporter):
        calls = []
        reconciler = Reconciler(settings, reporter=reporter)
        reconciler.delete_existing = MagicMock(side_effect=lambda r: calls.append("delete"))
        reconciler.create_links = MagicMock(side_effect=lambda r: calls.append("create"))
        reconciler.run_exec_scripts = MagicMock(side_effect=lambda r: calls.append("exec"))

        reconciler.reconcile()

        assert calls == ["delete", "create", "exec"]

    def test_events_grouped_by_phase(self, reconciler, settings, reporter):
        """测试报告中的事件按阶段顺序排列"""
        repo = settings.repo_root
        add_package(repo, "shell", ".profile -> profile\n", {"profile": "p"})
        add_exec(repo, "shell", "exit 0")
        reconciler.reconcile()

        report = reconciler.reconcile()

        phases = [e.phase for e in report.events]
        assert phases == sorted(phases, key=[Phase.DELETE, Phase.CREATE, Phase.EXEC].index)


class TestUnlinkStatusCheck:
    """unlink、status 与 check 测试"""

    def test_unlink_all(self, reconciler, settings):
        add_package(settings.repo_root, "shell", ".config/sh/profile -> profile\n", {"profile": "p"})
        reconciler.reconcile()

        report = reconciler.unlink_all()

        assert report.ok
        assert not (settings.home / ".config").exists()
        assert (settings.repo_root / "shell" / "profile").exists()

    def test_unlink_leaves_foreign_symlinks(self, reconciler, settings, tmp_path):
        other = tmp_path / "other"
        other.write_text("")
        (settings.home / ".other").symlink_to(other)

        reconciler.unlink_all()

        assert (settings.home / ".other").is_symlink()

    def test_sync_keeps_link_to_repo_root(self, tmp_path, reporter):
        """测试 home 中指向仓库根目录的便捷链接在同步后保留"""
        home = tmp_path / "home"
        home.mkdir()
        repo = tmp_path / "srv" / "dotfiles"
        repo.mkdir(parents=True)
        (home / "dotfiles").symlink_to(repo)
        settings = LinkSettings(
            repo_root=repo,
            home=home,
            config_home=home / ".config",
            data_home=home / ".local" / "share",
        )

        report = Reconciler(settings, reporter=reporter).reconcile()

        assert report.for_phase(Phase.DELETE) == []
        assert (home / "dotfiles").is_symlink()

    def test_status(self, reconciler, settings):
        add_package(settings.repo_root, "shell", ".profile -> profile\n", {"profile": "p"})
        reconciler.reconcile()

        symlinks = reconciler.status()

        assert [s.link_path for s in symlinks] == [settings.home / ".profile"]

    def test_check_does_not_touch_filesystem(self, reconciler, settings, reporter):
        add_package(settings.repo_root, "shell", ".profile -> profile\n.bashrc -> bashrc\n")

        report = reconciler.check()

        assert report.ok
        assert not (settings.home / ".profile").is_symlink()
        assert [e.message for e in reporter.events] == ["2 条声明"]
        assert reporter.events[0].severity == Severity.INFO

    def test_check_reports_syntax_error(self, reconciler, settings):
        add_package(settings.repo_root, "shell", "/abs -> x\n")

        report = reconciler.check()

        assert report.exit_code == 1
        assert report.kinds() == [ErrorKind.INVALID_SYNTAX]
