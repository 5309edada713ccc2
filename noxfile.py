import nox

nox.options.sessions = ["format", "lint", "typecheck", "test"]
nox.options.reuse_existing_virtualenvs = False


@nox.session(python="3.12")
def fix(session: nox.Session) -> None:
    """Format and fix code issues."""
    session.install("black", "isort", "ruff")
    session.run("black", "docpager/")
    session.run("isort", "docpager/")
    session.run("ruff", "check", "--fix", "docpager/")


@nox.session(python="3.12")
def format(session: nox.Session) -> None:
    """Check code formatting."""
    session.install("black", "isort")
    session.run("black", "--check", "--diff", "docpager/")
    session.run("isort", "--check-only", "--diff", "docpager/")


@nox.session(python="3.12")
def lint(session: nox.Session) -> None:
    """Run linting."""
    session.install("ruff")
    session.run("ruff", "check", "docpager/")


@nox.session(python="3.12")
def typecheck(session: nox.Session) -> None:
    """Run type checking."""
    session.install("mypy")
    session.install("-e", ".")
    session.run("mypy", "docpager")


@nox.session(python="3.12")
def test(session: nox.Session) -> None:
    """Run the test suite."""
    session.install("-e", ".[test]")
    session.run("pytest", "docpager/", "-v", "-r", "fE", "--disable-warnings")


@nox.session(python="3.12")
def test_cov(session: nox.Session) -> None:
    """Run tests with coverage."""
    session.install("-e", ".[test]", "pytest-cov")
    session.run(
        "pytest",
        "docpager/",
        "--cov=docpager",
        "--cov-report=xml:coverage.xml",
        "-r",
        "fE",
        "--disable-warnings",
    )
