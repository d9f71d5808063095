""" Invoke tasks. """
import os
import sys
import io
from invoke.tasks import task

if isinstance(sys.stdout, io.TextIOWrapper):
    sys.stdout.reconfigure(encoding='utf-8')


@task
def install(c):
    c.run('pip install -e ".[test]"')


@task
def back(c):
    c.run("uvicorn main:app --reload --host 127.0.0.1 --port 8001")


@task
def front(c):
    c.run("streamlit run ui.py", env={"PYTHONUTF8": "1"})


@task
def test(c):
    c.run("pytest -q tests")


@task
def clean(c):
    """
    Cross-platform clean task to remove all __pycache__ folders and .pyc files.
    """
    if os.name == 'nt':  # Windows
        # Remove all .pyc files
        c.run("for /R %f in (*.pyc) do del /F /Q \"%f\"", warn=True)
        # Remove all __pycache__ directories recursively
        c.run('for /d /r %d in (__pycache__) do @if exist "%d" rmdir /s /q "%d"', warn=True)
    else:  # Unix/Linux/macOS
        c.run("find . -type f -name '*.pyc' -delete", warn=True)
        c.run("find . -type d -name '__pycache__' -exec rm -r {} +", warn=True)
