"""Coverage collection from the containerized service.

The service runs inside the container under ``python -m coverage run``.
coverage.py writes its data file from an exit hook, into a directory bound
from the host, so the file is only complete when the container is stopped
gracefully. This module builds the container spec that attaches the agent
and reads back the artifact it leaves behind.
"""

import ast
from pathlib import Path
from typing import Dict, List, Optional, Set, TextIO

import structlog
from coverage import Coverage, CoverageData
from coverage.exceptions import CoverageException

from ..config import ContainerConfig, settings
from ..models.container import ContainerSpec, FileSystemBind
from ..models.errors import CoverageArtifactError

logger = structlog.get_logger(__name__)

APP_MODULE = "docker_demo.main"


def build_agent_command(
    config: Optional[ContainerConfig] = None,
    module: str = APP_MODULE,
    python: str = "python",
) -> List[str]:
    """Command override that runs the service module under coverage.py.

    Returns:
        [python, "-m", "coverage", "run", --rcfile, --data-file, "-m", module]
    """
    config = config or settings.container
    return [
        python,
        "-m",
        "coverage",
        "run",
        f"--rcfile={config.get_container_rcfile()}",
        f"--data-file={config.get_container_data_file()}",
        "-m",
        module,
    ]


def build_coverage_binds(config: Optional[ContainerConfig] = None) -> List[FileSystemBind]:
    """Agent configuration directory (read-only) and report output directory."""
    config = config or settings.container
    return [
        FileSystemBind(
            host_path=Path(config.coverage_agent_dir),
            container_path=config.container_agent_dir,
            read_only=True,
        ),
        FileSystemBind(
            host_path=Path(config.coverage_report_dir),
            container_path=config.container_report_dir,
        ),
    ]


def build_coverage_spec(
    config: Optional[ContainerConfig] = None, image: Optional[str] = None
) -> ContainerSpec:
    """Container spec for running the service with the coverage agent attached."""
    config = config or settings.container
    return ContainerSpec(
        image=image or config.image_name,
        exposed_ports=[config.container_port],
        binds=build_coverage_binds(config),
        command=build_agent_command(config),
        environment={"API_PORT": str(config.container_port)},
        labels={"com.docker-demo.coverage": "true"},
    )


def clear_artifact(config: Optional[ContainerConfig] = None) -> Path:
    """Remove a coverage data file left over from an earlier run."""
    config = config or settings.container
    path = config.get_artifact_path()
    if path.exists():
        path.unlink()
        logger.debug("Removed stale coverage artifact", path=str(path))
    return path


def _function_body_lines(source: str, function_name: str) -> Set[int]:
    tree = ast.parse(source)
    for node in ast.walk(tree):
        if (
            isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
            and node.name == function_name
        ):
            body = node.body
            # Skip the docstring, it is not an executable statement
            if (
                body
                and isinstance(body[0], ast.Expr)
                and isinstance(body[0].value, ast.Constant)
                and isinstance(body[0].value.value, str)
            ):
                body = body[1:]
            return {stmt.lineno for stmt in body}
    raise ValueError(f"Function {function_name} not found")


class CoverageArtifact:
    """A coverage data file written by the in-container agent."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Optional[CoverageData] = None

    @classmethod
    def from_settings(cls, config: Optional[ContainerConfig] = None) -> "CoverageArtifact":
        config = config or settings.container
        return cls(config.get_artifact_path())

    def exists(self) -> bool:
        return self.path.is_file() and self.path.stat().st_size > 0

    def load(self) -> CoverageData:
        """Read and validate the data file.

        Raises:
            CoverageArtifactError: If the file is missing, empty, unreadable
                or records no measured files
        """
        if not self.path.is_file():
            raise CoverageArtifactError(
                str(self.path), f"Coverage artifact not found: {self.path}"
            )
        if self.path.stat().st_size == 0:
            raise CoverageArtifactError(
                str(self.path), f"Coverage artifact is empty: {self.path}"
            )

        data = CoverageData(basename=str(self.path))
        try:
            data.read()
            measured = data.measured_files()
        except CoverageException as e:
            raise CoverageArtifactError(
                str(self.path), f"Unreadable coverage artifact {self.path}: {e}"
            ) from e

        if not measured:
            raise CoverageArtifactError(
                str(self.path), f"Coverage artifact records no files: {self.path}"
            )

        logger.debug(
            "Loaded coverage artifact", path=str(self.path), files=len(measured)
        )
        self._data = data
        return data

    @property
    def data(self) -> CoverageData:
        if self._data is None:
            self.load()
        return self._data

    def measured_files(self) -> List[str]:
        return sorted(self.data.measured_files())

    def find_measured_file(self, path: str) -> Optional[str]:
        """Find the recorded file that names the same file as path.

        Files recorded inside the container are relative to its working
        directory, so paths are matched on their trailing components.
        """
        wanted = Path(path).parts
        for filename in self.measured_files():
            recorded = Path(filename).parts
            n = min(len(wanted), len(recorded))
            if n and wanted[-n:] == recorded[-n:]:
                return filename
        return None

    def executed_lines(self, path: str) -> Set[int]:
        filename = self.find_measured_file(path)
        if filename is None:
            return set()
        return set(self.data.lines(filename) or [])

    def is_function_covered(self, source_path: Path, function_name: str) -> bool:
        """Whether any statement in a function's body was executed.

        Args:
            source_path: Path of the source file on the host
            function_name: Name of the function defined in that file
        """
        source_path = Path(source_path)
        body_lines = _function_body_lines(source_path.read_text(), function_name)
        return bool(body_lines & self.executed_lines(source_path.as_posix()))

    def coverage_by_function(
        self, source_path: Path, function_names: List[str]
    ) -> Dict[str, bool]:
        return {
            name: self.is_function_covered(source_path, name) for name in function_names
        }

    def report(
        self,
        rcfile: Optional[Path] = None,
        html_dir: Optional[Path] = None,
        file: Optional[TextIO] = None,
    ) -> float:
        """Render a text report (and optionally HTML); return total percent."""
        self.load()
        cov = Coverage(
            data_file=str(self.path),
            config_file=str(rcfile) if rcfile else False,
        )
        cov.load()
        try:
            total = cov.report(file=file, show_missing=True)
            if html_dir is not None:
                cov.html_report(directory=str(html_dir))
                logger.info("HTML coverage report written", directory=str(html_dir))
        except CoverageException as e:
            raise CoverageArtifactError(
                str(self.path), f"Failed to render coverage report: {e}"
            ) from e
        return total
