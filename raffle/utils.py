from functools import wraps
from time import time

import click


def log(message=""):
    click.echo(message)


def quiet(message=""):
    pass


def timeit(fn):
    @wraps(fn)
    def timed(*args, **kwargs):
        click.echo(f"{fn.__name__}ing {' '.join(str(a) for a in args[1:])}")
        ts = time()
        res = fn(*args, **kwargs)
        tf = time()
        click.echo(f"took {'%2.4f sec' % (tf-ts)}\n")
        return res

    return timed
