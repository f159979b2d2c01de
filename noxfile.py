"""Task runner for the developer.

# Usage

```
nox -l            # list of sessions.
nox -s <session>  # execute a session
nox -k <keyword>  # execute some session
```

"""

import os

import nox

nox.options.reuse_existing_virtualenvs = 1


@nox.session
def doc(session):
    """Build the documentation in a Nox environment."""
    session.install(".[doc]")
    session.run("sphinx-build", "docs", "docs/_build")
    print(f"file://{os.getcwd()}/docs/_build/index.html")


@nox.session
def wheel(session):
    """Build the wheel."""
    session.install("build", "twine")
    session.run("python", "-m", "build")
    session.run("twine", "check", "dist/*")


@nox.session
def test(session):
    """Run the test in a Nox environment."""
    session.install(".[test]")

    session.run(
        "pytest",
        "-v",
        "-s",
        "--cov=pylandcore",
        "--cov-append",
        "--cov-report=xml",
        "--cov-report",
        "term-missing",
        "tests",
    )
