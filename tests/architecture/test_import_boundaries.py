"""
Import-boundary enforcement.

1. Domain purity        -- sitio_kernel/domain/** may not import the ORM,
                           the db or models packages, services or config.
2. Domain no-impure     -- sitio_kernel/domain/** may not read the wall clock
                           or the environment outside the Clock module.
3. Dependency direction -- sitio_kernel never imports sitio_config.
4. Config centralisation -- code outside sitio_config uses its package
                           entrypoint, not its internal sub-modules.

All scanning is done via AST; these tests are read-only.
"""

import ast
import glob
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(root: str) -> list[str]:
    """Return all .py files under *root*, sorted for deterministic order."""
    return sorted(glob.glob(f"{ROOT / root}/**/*.py", recursive=True))


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    source = Path(filepath).read_text(encoding="utf-8")
    tree = ast.parse(source, filename=filepath)

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _extract_attribute_calls(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    tree = ast.parse(Path(filepath).read_text(encoding="utf-8"), filename=filepath)
    return [
        (node.lineno, f"{node.value.id}.{node.attr}")
        for node in ast.walk(tree)
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name)
    ]


def _relative(filepath: str) -> str:
    return str(Path(filepath).relative_to(ROOT))


# ---------------------------------------------------------------------------
# 1. Domain purity
# ---------------------------------------------------------------------------

class TestDomainPurity:
    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "sqlite3",
        "yaml",
        "sitio_kernel.db",
        "sitio_kernel.models",
        "sitio_kernel.services",
        "sitio_config",
    )

    def test_domain_has_files(self):
        assert _python_files("sitio_kernel/domain")

    def test_domain_files_have_no_forbidden_imports(self):
        violations = [
            f"  {_relative(path)}:{lineno} imports '{module}'"
            for path in _python_files("sitio_kernel/domain")
            for lineno, module in _extract_imports(path)
            if _matches_any(module, self.FORBIDDEN_PREFIXES)
        ]
        assert not violations, (
            "Domain purity violation: sitio_kernel/domain/** must not import "
            "the ORM, persistence, services or config:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 2. Domain no-impure
# ---------------------------------------------------------------------------

class TestDomainNoImpureFunctions:
    IMPURE = ("datetime.now", "datetime.utcnow", "date.today", "os.environ", "os.getenv", "time.time")
    ALLOWED_FILES = ("sitio_kernel/domain/clock.py",)

    def test_no_wall_clock_or_environment(self):
        violations = [
            f"  {_relative(path)}:{lineno} uses {ref}"
            for path in _python_files("sitio_kernel/domain")
            if _relative(path) not in self.ALLOWED_FILES
            for lineno, ref in _extract_attribute_calls(path)
            if ref in self.IMPURE
        ]
        assert not violations, (
            "sitio_kernel/domain/** must take time from an injected Clock:\n"
            + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 3. Dependency direction
# ---------------------------------------------------------------------------

class TestDependencyDirection:
    def test_kernel_does_not_import_config(self):
        violations = [
            f"  {_relative(path)}:{lineno} imports '{module}'"
            for path in _python_files("sitio_kernel")
            for lineno, module in _extract_imports(path)
            if _matches_any(module, ("sitio_config",))
        ]
        assert not violations, (
            "sitio_kernel must not depend on sitio_config:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 4. Config centralisation
# ---------------------------------------------------------------------------

class TestConfigCentralisation:
    INTERNAL = ("sitio_config.loader", "sitio_config.settings")

    def test_outside_code_uses_entrypoint(self):
        violations = [
            f"  {_relative(path)}:{lineno} imports '{module}'"
            for root in ("sitio_kernel", "scripts")
            for path in _python_files(root)
            for lineno, module in _extract_imports(path)
            if _matches_any(module, self.INTERNAL)
        ]
        assert not violations, (
            "Import configuration through the sitio_config package:\n"
            + "\n".join(violations)
        )
