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
def simulate(c, title="Big Red Backpack", count=5):
    c.run(f'slug-guard simulate "{title}" --count {count}')


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
