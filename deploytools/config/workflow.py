#!/usr/bin/env python3
"""
Generates the GitHub Actions workflow that runs a deployment on push to the
release branch or on manual dispatch, by populating a template.
"""

from pathlib import Path

TEMPLATE_FILE = Path(__file__).parent / 'templates' / 'github-deploy-workflow.yml'

SECRET_KEYS = ('host_env', 'user_env', 'ssh_key_env')


def generate_secret_env(config):
    """env: entries mapping each credential env var to the secret of the same name."""
    names = [config['server'][key] for key in SECRET_KEYS if config['server'].get(key)]
    if config['storage'].get('backend') == 's3':
        names += ['AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY']
    return "\n".join(f"          {name}: ${{{{ secrets.{name} }}}}" for name in names)


def generate_workflow(config, config_path='config/deployment-config.yaml', template_path=None):
    """Return the workflow YAML text."""
    with open(template_path or TEMPLATE_FILE, 'r') as template_file:
        content = template_file.read()

    workflow = config['workflow']
    replacements = {
        '%%APP_NAME%%': config['app']['name'],
        '%%BRANCH%%': workflow['branch'],
        '%%NODE_VERSION%%': str(workflow['node_version']),
        '%%BUILD_COMMAND%%': workflow['build_command'],
        '%%INSTALL_SOURCE%%': workflow['install_source'],
        '%%CONFIG_PATH%%': str(config_path),
        '%%SECRET_ENV%%': generate_secret_env(config),
    }
    for placeholder, value in replacements.items():
        content = content.replace(placeholder, value)
    return content
