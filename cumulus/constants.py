"""Constants."""

from constantly import NamedConstant, Names


class ServiceType(Names):
    """
    Constants representing the Keystone-authenticated compute services.

    CloudStack is not listed here: it does not use a service catalog, and its
    requests are signed rather than authenticated with a token.
    """
    CLOUD_SERVERS = NamedConstant()
    NOVA = NamedConstant()


DEFAULT_SERVICE_NAMES = {
    ServiceType.CLOUD_SERVERS: 'cloudServers',
    ServiceType.NOVA: 'cloudServersOpenStack',
}

_CONFIG_KEYS = {
    ServiceType.CLOUD_SERVERS: 'cloudServers',
    ServiceType.NOVA: 'nova',
}


def get_service_configs(config):
    """
    Return service configurations for all services based on the config data.

    Returns a dict, where keys are :obj:`ServiceType` members, and values are
    service configs. A service config is either a dict with ``name`` and
    ``region`` keys, used to look the endpoint up in the service catalog, or a
    dict with just a ``url`` key for a fixed endpoint.

    CloudServers v1.0 is not regional, so unless its section names a region
    it is looked up with a region of :data:`None`, which matches any endpoint.

    :param dict config: Config from file, with an optional top-level
        ``region`` and an optional ``services`` section.
    """
    region = config.get('region')
    services = config.get('services', {})
    configs = {}
    for service_type, key in _CONFIG_KEYS.items():
        service = services.get(key, {})
        if 'url' in service:
            configs[service_type] = {'url': service['url']}
            continue
        default_region = (
            None if service_type is ServiceType.CLOUD_SERVERS else region)
        configs[service_type] = {
            'name': service.get('name', DEFAULT_SERVICE_NAMES[service_type]),
            'region': service.get('region', default_region),
        }
    return configs
