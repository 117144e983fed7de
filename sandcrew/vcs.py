"""Version-control adapter over dulwich (pure Python, no git binary needed)."""

import io
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dulwich import porcelain
from dulwich.index import IndexEntry
from dulwich.objects import Blob, Tree
from dulwich.repo import Repo

from sandcrew.utils.ignore import IgnoreRules


class FileState(str, Enum):
    ABSENT = "absent"
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"


@dataclass(frozen=True)
class StatusEntry:
    """One row of the status matrix.

    ``head`` is ABSENT or UNMODIFIED. ``workdir`` and ``stage`` are
    expressed relative to HEAD, so an untouched file has all three equal.
    """

    path: str
    head: FileState
    workdir: FileState
    stage: FileState

    @property
    def is_changed(self) -> bool:
        return self.workdir != self.head or self.stage != self.head


def _state(head_sha: Optional[bytes], other_sha: Optional[bytes]) -> FileState:
    if head_sha is None:
        return FileState.ABSENT if other_sha is None else FileState.ADDED
    if other_sha is None:
        return FileState.DELETED
    return FileState.UNMODIFIED if other_sha == head_sha else FileState.MODIFIED


class GitRepository:
    """Thin wrapper around a dulwich working-tree repository.

    Paths are repository-relative POSIX strings without a leading slash.
    """

    def __init__(self, path: Path):
        self.path = path
        self.repo = Repo(str(path))

    @classmethod
    def init(cls, path: Path) -> "GitRepository":
        path.mkdir(parents=True, exist_ok=True)
        porcelain.init(path=str(path), bare=False)
        return cls(path)

    @classmethod
    def clone(cls, url: str, path: Path, depth: Optional[int] = 1) -> "GitRepository":
        """Clone a remote repository.

        Args:
            url: Remote URL
            path: Target directory (must not exist or be empty)
            depth: Shallow clone depth (None for full history)

        Returns:
            GitRepository for the new checkout
        """
        porcelain.clone(
            url,
            str(path),
            depth=depth,
            checkout=True,
            errstream=io.BytesIO(),
        )
        return cls(path)

    def head_commit(self) -> Optional[bytes]:
        """SHA of HEAD, or None for a repository with no commits."""
        try:
            return self.repo.head()
        except KeyError:
            return None

    def head_files(self) -> dict[str, bytes]:
        """Map every file in the HEAD tree to its blob SHA."""
        head = self.head_commit()
        if head is None:
            return {}
        tree = self.repo[self.repo[head].tree]
        return self._collect_tree_files(tree)

    def _collect_tree_files(self, tree: Tree, prefix: str = "") -> dict[str, bytes]:
        files: dict[str, bytes] = {}
        for name, _mode, sha in tree.items():
            full_path = f"{prefix}/{name.decode('utf-8')}" if prefix else name.decode("utf-8")
            obj = self.repo[sha]
            if isinstance(obj, Tree):
                files.update(self._collect_tree_files(obj, full_path))
            else:
                files[full_path] = sha
        return files

    def index_files(self) -> dict[str, bytes]:
        """Map every staged path to its blob SHA."""
        index = self.repo.open_index()
        return {path.decode("utf-8"): entry.sha for path, entry in index.items()}

    def workdir_sha(self, path: str) -> Optional[bytes]:
        """Blob SHA the working-directory file would have, or None if absent."""
        data = self.read_workdir(path)
        if data is None:
            return None
        return Blob.from_string(data).id

    def read_workdir(self, path: str) -> Optional[bytes]:
        file_path = self.path / path
        if not file_path.is_file():
            return None
        return file_path.read_bytes()

    def read_head_blob(self, path: str, head: Optional[dict[str, bytes]] = None) -> Optional[bytes]:
        """Content of a path at HEAD, or None if HEAD does not have it.

        Args:
            path: Repository-relative path
            head: Result of head_files(), to avoid walking the tree per path
        """
        if head is None:
            head = self.head_files()
        sha = head.get(path)
        if sha is None:
            return None
        return self.repo[sha].data

    def status_matrix(
        self,
        ignore: Optional[IgnoreRules] = None,
        head: Optional[dict[str, bytes]] = None,
    ) -> list[StatusEntry]:
        """Compare HEAD, index and working directory for every known path.

        Args:
            ignore: Rules for skipping untracked working-directory files
            head: Result of head_files(), when the caller already has it

        Returns:
            StatusEntry per path, sorted by path
        """
        ignore = ignore or IgnoreRules(self.path)
        if head is None:
            head = self.head_files()
        index = self.index_files()
        workdir_paths = set(ignore.walk())

        entries = []
        for path in sorted(set(head) | set(index) | workdir_paths):
            head_sha = head.get(path)
            workdir_sha = self.workdir_sha(path) if (path in workdir_paths or path in head) else None
            entries.append(
                StatusEntry(
                    path=path,
                    head=FileState.ABSENT if head_sha is None else FileState.UNMODIFIED,
                    workdir=_state(head_sha, workdir_sha),
                    stage=_state(head_sha, index.get(path)),
                )
            )
        return entries

    def stage(self, path: str) -> None:
        """Add the working-directory file to the index."""
        file_path = self.path / path
        content = file_path.read_bytes()
        blob = Blob.from_string(content)
        self.repo.object_store.add_object(blob)

        stat = file_path.stat()
        mode = 0o100755 if stat.st_mode & 0o111 else 0o100644

        index = self.repo.open_index()
        index[path.encode("utf-8")] = IndexEntry(
            ctime=(int(stat.st_ctime), 0),
            mtime=(int(stat.st_mtime), 0),
            dev=stat.st_dev,
            ino=stat.st_ino,
            mode=mode,
            uid=stat.st_uid,
            gid=stat.st_gid,
            size=stat.st_size,
            sha=blob.id,
            flags=0,
        )
        index.write()

    def unstage(self, path: str) -> None:
        """Remove a path from the index (stages its deletion)."""
        index = self.repo.open_index()
        key = path.encode("utf-8")
        if key in index:
            del index[key]
            index.write()

    def commit(self, message: str, author: str) -> str:
        """Commit the index.

        Args:
            message: Full commit message
            author: "Name <email>" used as author and committer

        Returns:
            Hex SHA of the new commit
        """
        sha = porcelain.commit(
            self.repo,
            message=message.encode("utf-8"),
            author=author.encode("utf-8"),
            committer=author.encode("utf-8"),
        )
        return sha.decode("ascii")

    def current_branch(self) -> Optional[str]:
        try:
            return porcelain.active_branch(self.repo).decode("utf-8")
        except (KeyError, IndexError):
            return None

    def branches(self) -> list[str]:
        return sorted(b.decode("utf-8") for b in porcelain.branch_list(self.repo))

    def create_branch(self, name: str) -> None:
        porcelain.branch_create(self.repo, name)

    def branch_commit(self, name: str) -> bytes:
        """SHA a local branch points at.

        Raises:
            KeyError: If the branch does not exist
        """
        return self.repo.refs[f"refs/heads/{name}".encode("utf-8")]

    def checkout(self, name: str) -> None:
        """Point HEAD at an existing branch and update the working tree to it."""
        ref = f"refs/heads/{name}".encode("utf-8")
        if ref not in self.repo.refs:
            raise KeyError(name)

        previous = self.head_commit()
        self.repo.refs.set_symbolic_ref(b"HEAD", ref)
        if self.repo.refs[ref] != previous:
            porcelain.reset(self.repo, "hard")

    def push(self, branch: str, username: str, password: str, remote: str = "origin") -> None:
        """Push a local branch to the same name on the remote.

        Raises:
            Whatever dulwich raises for transport or protocol failures
        """
        refspec = f"refs/heads/{branch}:refs/heads/{branch}".encode("utf-8")
        porcelain.push(
            self.repo,
            remote,
            refspecs=[refspec],
            outstream=io.BytesIO(),
            errstream=io.BytesIO(),
            username=username,
            password=password,
        )

    def remote_url(self, remote: str = "origin") -> Optional[str]:
        config = self.repo.get_config()
        try:
            return config.get((b"remote", remote.encode("utf-8")), b"url").decode("utf-8")
        except KeyError:
            return None

    def close(self) -> None:
        self.repo.close()


def is_binary_file(path: Path) -> bool:
    """Heuristic binary check: NUL byte in the first 8 KiB."""
    with open(path, "rb") as f:
        chunk = f.read(8192)
    return b"\0" in chunk
