from invoke import task


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c):
    c.run("pytest")


@task
def demo(c, run_id="demo"):
    """Run the bundled reference survey into ./runs/<run_id>."""
    c.run(f"movie-survey run --run-id {run_id}")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
