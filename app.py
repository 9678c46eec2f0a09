"""Flask app - serves the local webhook route and provides the listen command."""

import logging
import sys

import click
from flask import Flask, current_app
from flask.cli import FlaskGroup, with_appcontext

import config

VERSION = "1.0.0"


def create_app(test_config=None):
    """
    Build the Flask application.

    Args:
        test_config: Optional mapping applied over the environment configuration
    """
    app = Flask(__name__)
    app.config.update(
        LEMON_SQUEEZY_API_KEY=config.API_KEY,
        LEMON_SQUEEZY_STORE=config.STORE,
        LEMON_SQUEEZY_SIGNING_SECRET=config.SIGNING_SECRET,
        LEMON_SQUEEZY_PATH=config.WEBHOOK_PATH,
        LEMON_SQUEEZY_API_URL=config.API_URL,
        LEMON_SQUEEZY_LOCAL_URL=config.LOCAL_URL,
        NGROK_API_URL=config.NGROK_API_URL,
        TUNNEL_START_TIMEOUT=config.TUNNEL_START_TIMEOUT,
        REQUEST_TIMEOUT=config.REQUEST_TIMEOUT,
        APP_ENV=config.APP_ENV,
    )
    if test_config:
        app.config.update(test_config)

    from api import api_bp
    app.register_blueprint(api_bp, url_prefix=f"/{app.config['LEMON_SQUEEZY_PATH'].strip('/')}")

    app.cli.add_command(listen_command)

    return app


@click.command('listen', help='Listens to Lemon Squeezy webhooks via expose, ngrok, or a custom URL.')
@click.argument('service', required=False)
@click.option('--url', default=None, help='The URL to use for webhooks when using a custom service.')
@click.option('--cleanup', is_flag=True, help='Remove all webhooks for the given service.')
@click.option('--verbose', '-v', is_flag=True, help='Show tunnel output and debug logging.')
@with_appcontext
def listen_command(service, url, cleanup, verbose):
    from tunnel import ListenController

    if verbose:
        logging.basicConfig(level=logging.DEBUG)
        current_app.logger.setLevel(logging.DEBUG)

    if not service:
        service = click.prompt(
            'Please choose a service',
            type=click.Choice(['expose', 'ngrok', 'custom']),
            default='expose',
        )

    controller = ListenController(current_app._get_current_object())
    status = controller.run(service, url=url, cleanup=cleanup, verbose=verbose)
    sys.exit(status)


cli = FlaskGroup(create_app=create_app, help='Lemon Squeezy webhook listener.')


def main():
    cli()


if __name__ == '__main__':
    main()
