"""Nox sessions for the notion-throttle test suite and type checks."""

import nox

PYTHON_VERSIONS = ["3.10", "3.11", "3.12", "3.13"]

nox.options.sessions = ["tests", "type_check"]
nox.options.default_venv_backend = "uv"


@nox.session(python=PYTHON_VERSIONS)
def tests(session):
    """Run unit and integration tests with pytest."""
    session.install(".[full,dev]")
    session.run("pytest", "tests/", "-q", "--no-cov", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def coverage(session):
    """Run the test suite with a coverage report."""
    session.install(".[full,dev]")
    session.run("pytest", "tests/", "-q", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def type_check(session):
    """Run mypy over the package."""
    session.install(".[full,dev]")
    session.run("mypy", "src/notion_throttle", *session.posargs)
