"""
User-friendly error messages for listener operations.

Maps technical errors to actionable messages with troubleshooting guidance.
"""


ERROR_MESSAGES = {
    'environment_restricted': {
        'message': 'listen can only be used in local environment.',
        'guidance': 'Set APP_ENV=local on your development machine. The listener never runs against production.'
    },
    'process_start_failed': {
        'message': 'Could not start tunnel process',
        'guidance': 'Make sure the tunnel binary is installed and on your PATH.'
    },
    'process_crashed': {
        'message': 'Tunnel process stopped unexpectedly.',
        'guidance': 'Webhook {webhook_id} is still registered on Lemon Squeezy, use --cleanup to remove all {service} webhooks.'
    },
    'tunnel_start_timeout': {
        'message': 'Timed out waiting for a public tunnel URL',
        'guidance': 'Check the tunnel output with --verbose. The provider may require authentication first.'
    },
    'webhook_registration_failed': {
        'message': 'Failed to setup webhook.',
        'guidance': 'Verify your API key and store ID are correct and that the key has webhook permissions.'
    },
    'webhook_deletion_failed': {
        'message': 'Failed to remove webhook,',
        'guidance': 'use --cleanup to remove all {service} webhooks.'
    },
    'network_error': {
        'message': 'Network connection error',
        'guidance': 'Check your internet connection and try again.'
    },
}


def get_user_friendly_error(error_key, technical_details=None):
    """
    Get user-friendly error message with guidance.

    Args:
        error_key: Key from ERROR_MESSAGES dict
        technical_details: Optional technical error details (not shown to user)

    Returns:
        Dict with message and guidance
    """
    error_info = ERROR_MESSAGES.get(error_key, {
        'message': 'An unexpected error occurred',
        'guidance': 'Try again in a few minutes. If the problem continues, run with --verbose and check the output.'
    })

    result = {
        'message': error_info['message'],
        'guidance': error_info['guidance']
    }

    # technical details are logged but not shown to user
    if technical_details:
        result['_technical'] = technical_details

    return result


def format_error(error_key, technical_details=None, **params):
    """
    Render an error as a single console line: message, then guidance.

    Keyword params fill the placeholders of the guidance text.
    """
    error_info = get_user_friendly_error(error_key, technical_details)
    guidance = error_info['guidance'].format(**params) if params else error_info['guidance']
    return f"{error_info['message']} {guidance}"
