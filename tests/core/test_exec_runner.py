"""执行脚本运行器测试"""

import os
import stat

import pytest

from dotlink.core.data_structures import LinkSettings
from dotlink.core.exceptions import (
    ErrorKind,
    ExecScriptError,
    ScriptFailed,
    ScriptNotExecutable,
)
from dotlink.core.exec_runner import ExecRunner, iter_top_level_dirs


def write_script(path, body, executable=True):
    """写入 shell 脚本"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body + "\n")
    if executable:
        path.chmod(stat.S_IRWXU)
    return path


@pytest.fixture
def repo(tmp_path):
    """创建空仓库"""
    path = tmp_path / "dotfiles"
    path.mkdir()
    return path


@pytest.fixture
def runner(tmp_path, repo):
    """创建运行器实例"""
    settings = LinkSettings(
        repo_root=repo,
        home=tmp_path / "home",
        config_home=tmp_path / "home" / ".config",
        data_home=tmp_path / "home" / ".local" / "share",
    )
    return ExecRunner(settings)


class TestIterTopLevelDirs:
    """顶层目录枚举测试"""

    def test_sorted_and_directories_only(self, repo):
        for name in ["vim", "bash", "git"]:
            (repo / name).mkdir()
        (repo / "README").write_text("")

        assert [d.name for d in iter_top_level_dirs(repo)] == ["bash", "git", "vim"]


class TestExecRunnerDiscover:
    """脚本发现测试"""

    def test_discover_requires_marker(self, runner, repo):
        """测试只有带执行标记的目录会被选中"""
        write_script(repo / "bash" / "setup", "exit 0")
        (repo / "bash" / "exec").write_text("")
        write_script(repo / "vim" / "setup", "exit 0")

        assert runner.discover() == [repo / "bash" / "setup"]

    def test_discover_order(self, runner, repo):
        """测试按目录名字典序返回"""
        for name in ["zsh", "atom", "mutt"]:
            write_script(repo / name / "setup", "exit 0")
            (repo / name / "exec").write_text("")

        assert [s.parent.name for s in runner.discover()] == ["atom", "mutt", "zsh"]

    def test_discover_marker_without_script(self, runner, repo):
        """测试标记存在但脚本缺失时仍返回路径，运行时报告错误"""
        (repo / "tmux").mkdir()
        (repo / "tmux" / "exec").write_text("")

        assert runner.discover() == [repo / "tmux" / "setup"]

    def test_discover_empty_repo(self, runner):
        assert runner.discover() == []


class TestExecRunnerRun:
    """脚本运行测试"""

    def test_run_success(self, runner, repo):
        script = write_script(repo / "bash" / "setup", "exit 0")

        assert runner.run(script) == 0

    def test_run_uses_script_directory_as_cwd(self, runner, repo):
        """测试工作目录是脚本所在目录"""
        script = write_script(repo / "bash" / "setup", "pwd > cwd.txt")

        runner.run(script)

        assert os.path.samefile((repo / "bash" / "cwd.txt").read_text().strip(), repo / "bash")

    def test_run_non_zero_exit(self, runner, repo):
        """测试非零退出状态"""
        script = write_script(repo / "bash" / "setup", "exit 2")

        with pytest.raises(ScriptFailed) as exc_info:
            runner.run(script)

        assert exc_info.value.returncode == 2
        assert exc_info.value.kind == ErrorKind.SCRIPT_EXIT_STATUS
        assert exc_info.value.script == script
        assert "2" in exc_info.value.message

    def test_run_not_executable(self, runner, repo):
        """测试缺少执行权限"""
        script = write_script(repo / "bash" / "setup", "exit 0", executable=False)

        with pytest.raises(ScriptNotExecutable) as exc_info:
            runner.run(script)

        assert exc_info.value.kind == ErrorKind.SCRIPT_NOT_EXECUTABLE

    def test_run_missing_script(self, runner, repo):
        """测试脚本不存在"""
        (repo / "tmux").mkdir()

        with pytest.raises(ExecScriptError) as exc_info:
            runner.run(repo / "tmux" / "setup")

        assert exc_info.value.kind == ErrorKind.EXEC_FAILED
