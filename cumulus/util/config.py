"""
A global configuration API, loaded from a JSON file.
"""
import json

import jsonschema

from toolz.dicttoolz import get_in, update_in

from cumulus.json_schema.config import config_schema


_config_data = {}


def set_config_data(data):
    """
    Set the global configuration data.

    :param dict data: The configuration data, probably loaded from some JSON.
    """
    global _config_data
    _config_data = data


def update_config_data(name, value):
    """
    Update config value to existing configuration

    :param str name: Name is a . separated path to a configuration value
        stored in a nested dictionary.
    :param value: Value to be updated
    """
    global _config_data
    _config_data = update_in(_config_data, name.split('.'), lambda _: value)


def config_value(name, default=None):
    """
    :param str name: Name is a . separated path to a configuration value
        stored in a nested dictionary.

    :returns: The value specified in the configuration, or ``default``.
    """
    return get_in(name.split('.'), _config_data, default)


def load_config(path):
    """
    Read, validate and install a JSON configuration file.

    :param str path: location of the file.
    :raise jsonschema.ValidationError: if the file does not match
        :data:`cumulus.json_schema.config.config_schema`.
    :return: the configuration data.
    """
    with open(path) as f:
        data = json.load(f)
    jsonschema.validate(data, config_schema)
    set_config_data(data)
    return data
