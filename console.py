"""Console output helpers for the listen command."""

import click


def note(message):
    click.echo(message)


def info(message):
    click.secho(message, fg='green')


def warn(message):
    click.secho(message, fg='yellow', err=True)


def error(message):
    click.secho(message, fg='red', err=True)
