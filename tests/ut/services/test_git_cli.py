"""GitCli 单元测试（注入录制执行器，不调用真实 git）"""

from __future__ import annotations

from pathlib import Path

import pytest

from hxdeps.core.exceptions import CacheStateError, ExternalToolError
from hxdeps.services.vcs.git_cli import GitCli
from hxdeps.utils.shell import CommandResult

OK = CommandResult(0, "", "")
SHA = "0123456789abcdef0123456789abcdef01234567"


class ScriptedExecutor:
    """按 git 子命令前缀返回预置结果，未匹配时返回空输出的成功结果"""

    def __init__(self, responses: list[tuple[tuple[str, ...], CommandResult]] | None = None) -> None:
        self.responses = responses or []
        self.calls: list[list[str]] = []

    def execute(self, args, *, cwd=None, env=None) -> CommandResult:
        self.calls.append(list(args))
        rest = tuple(args[3:]) if len(args) > 2 and args[1] == "-C" else tuple(args[1:])
        for prefix, result in self.responses:
            if rest[: len(prefix)] == prefix:
                return result
        return OK

    def subcommands(self) -> list[list[str]]:
        return [c[3:] if len(c) > 2 and c[1] == "-C" else c[1:] for c in self.calls]


def _git(*responses) -> tuple[GitCli, ScriptedExecutor]:
    ex = ScriptedExecutor(list(responses))
    return GitCli(executor=ex), ex


class TestOpen:
    def test_toplevel_matches(self, tmp_path: Path) -> None:
        git, _ = _git((("rev-parse", "--show-toplevel"), CommandResult(0, f"{tmp_path}\n", "")))
        git.open(tmp_path)

    def test_nested_in_other_repo(self, tmp_path: Path) -> None:
        inner = tmp_path / "lib" / "git"
        inner.mkdir(parents=True)
        git, _ = _git((("rev-parse", "--show-toplevel"), CommandResult(0, f"{tmp_path}\n", "")))
        with pytest.raises(CacheStateError, match="不是 git 仓库根目录"):
            git.open(inner)

    def test_not_a_repo(self, tmp_path: Path) -> None:
        git, _ = _git((("rev-parse",), CommandResult(128, "", "fatal: not a git repository")))
        with pytest.raises(CacheStateError):
            git.open(tmp_path)

    def test_head_unresolvable(self, tmp_path: Path) -> None:
        git, _ = _git((("rev-parse", "HEAD"), CommandResult(128, "", "fatal: bad HEAD")))
        with pytest.raises(CacheStateError):
            git.head_commit(tmp_path)


class TestResolveRef:
    def test_branch_first(self, tmp_path: Path) -> None:
        git, ex = _git(
            (("rev-parse", "--verify", "--quiet", "refs/heads/dev^{commit}"), CommandResult(0, SHA + "\n", "")),
        )
        assert git.resolve_ref(tmp_path, "dev") == SHA
        assert len(ex.calls) == 1

    def test_tag(self, tmp_path: Path) -> None:
        git, _ = _git(
            (("rev-parse", "--verify", "--quiet", "refs/heads/v5.0.0^{commit}"), CommandResult(1, "", "")),
            (("rev-parse", "--verify", "--quiet", "refs/tags/v5.0.0^{commit}"), CommandResult(0, SHA, "")),
        )
        assert git.resolve_ref(tmp_path, "v5.0.0") == SHA

    def test_abbreviated_commit(self, tmp_path: Path) -> None:
        git, ex = _git(
            (("rev-parse", "--verify", "--quiet", "0123456^{commit}"), CommandResult(0, SHA, "")),
        )
        assert git.resolve_ref(tmp_path, "0123456") == SHA
        assert ex.subcommands()[-1][-1] == "0123456^{commit}"

    def test_unresolvable_name(self, tmp_path: Path) -> None:
        git, ex = _git()
        assert git.resolve_ref(tmp_path, "no-such-branch") is None
        assert len(ex.calls) == 3


class TestWorktree:
    def test_dirty_ignores_untracked(self, tmp_path: Path) -> None:
        git, ex = _git((("status",), CommandResult(0, " M src/Main.hx\n", "")))
        assert git.is_dirty(tmp_path)
        assert "--untracked-files=no" in ex.calls[0]

    def test_clean(self, tmp_path: Path) -> None:
        git, _ = _git()
        assert not git.is_dirty(tmp_path)

    def test_detached_head(self, tmp_path: Path) -> None:
        git, _ = _git((("rev-parse", "--abbrev-ref"), CommandResult(0, "HEAD\n", "")))
        assert git.current_branch(tmp_path) is None

    def test_checkout_failure_returns_false(self, tmp_path: Path) -> None:
        git, _ = _git((("checkout",), CommandResult(1, "", "error: pathspec 'v9' did not match")))
        assert git.checkout(tmp_path, "v9") is False

    def test_checked_checkout_carries_stderr(self, tmp_path: Path) -> None:
        git, _ = _git((("checkout",), CommandResult(1, "", "error: pathspec 'v9' did not match")))
        with pytest.raises(ExternalToolError, match="pathspec 'v9' did not match") as exc:
            git.checkout(tmp_path, "v9", check=True)
        assert "did not match" in exc.value.stderr

    def test_discard(self, tmp_path: Path) -> None:
        git, ex = _git()
        git.discard_changes(tmp_path)
        assert ex.subcommands() == [["reset", "--hard", "HEAD"], ["clean", "-fd"]]


class TestClone:
    def test_blobless(self, tmp_path: Path) -> None:
        git, ex = _git()
        git.clone("https://github.com/a/b", tmp_path / "b" / "git")
        assert ex.subcommands() == [["clone", "--filter=blob:none", "https://github.com/a/b", str(tmp_path / "b" / "git")]]

    def test_blobless_fallback(self, tmp_path: Path) -> None:
        git, ex = _git(
            (("clone", "--filter=blob:none"), CommandResult(128, "", "filtering not recognized by server")),
        )
        git.clone("https://example.com/a/b", tmp_path / "git")
        assert [c[:2] for c in ex.subcommands()] == [["clone", "--filter=blob:none"], ["clone", "https://example.com/a/b"]]

    def test_full_clone_only(self, tmp_path: Path) -> None:
        git, ex = _git()
        git.clone("https://example.com/a/b", tmp_path / "git", blobless=False)
        assert len(ex.calls) == 1
        assert "--filter=blob:none" not in ex.calls[0]

    def test_clone_failure(self, tmp_path: Path) -> None:
        git, _ = _git((("clone",), CommandResult(128, "", "fatal: repository not found")))
        with pytest.raises(ExternalToolError, match="repository not found"):
            git.clone("https://example.com/a/b", tmp_path / "git")

    def test_custom_executable(self, tmp_path: Path) -> None:
        ex = ScriptedExecutor()
        GitCli(executor=ex, git="/opt/git/bin/git").fetch(tmp_path, "a/b")
        assert ex.calls[0][:3] == ["/opt/git/bin/git", "-C", str(tmp_path)]


class TestRemotes:
    def test_get_url_missing(self, tmp_path: Path) -> None:
        git, _ = _git((("remote", "get-url"), CommandResult(2, "", "error: No such remote")))
        assert git.remote_get_url(tmp_path, "a/b") is None

    def test_rename_failure(self, tmp_path: Path) -> None:
        git, _ = _git((("remote", "rename"), CommandResult(3, "", "error: remote a/b already exists")))
        with pytest.raises(ExternalToolError):
            git.remote_rename(tmp_path, "origin", "a/b")


class TestStashAndCommit:
    def test_stash_pop_conflict(self, tmp_path: Path) -> None:
        git, _ = _git((("stash", "pop"), CommandResult(1, "CONFLICT (content): Merge conflict in Main.hx", "")))
        assert git.stash_pop(tmp_path).conflicted

    def test_stash_pop_other_failure(self, tmp_path: Path) -> None:
        git, _ = _git((("stash", "pop"), CommandResult(1, "", "No stash entries found.")))
        with pytest.raises(ExternalToolError):
            git.stash_pop(tmp_path)

    def test_stash_pop_ok(self, tmp_path: Path) -> None:
        git, _ = _git()
        assert not git.stash_pop(tmp_path).conflicted

    def test_nothing_to_commit(self, tmp_path: Path) -> None:
        git, ex = _git((("commit",), CommandResult(1, "nothing to commit, working tree clean", "")))
        assert git.commit_all(tmp_path, "wip") is False
        assert ex.subcommands()[0] == ["add", "-A"]

    def test_commit(self, tmp_path: Path) -> None:
        git, ex = _git()
        assert git.commit_all(tmp_path, "wip") is True
        assert ex.subcommands()[1] == ["commit", "-m", "wip"]

    def test_commit_failure(self, tmp_path: Path) -> None:
        git, _ = _git((("commit",), CommandResult(128, "", "fatal: unable to auto-detect email")))
        with pytest.raises(ExternalToolError):
            git.commit_all(tmp_path, "wip")
