"""
The ``cumulus`` command: read-only listings against the configured clouds.

    cumulus --config config.json list --region ORD nova servers
    cumulus list cloudservers flavors
    cumulus list cloudstack zones
"""

import json
import sys
from functools import partial

from effect import Effect

from twisted.internet import task
from twisted.python import log as twisted_log
from twisted.python import usage

from txeffect import perform

from cumulus.auth import generate_authenticator
from cumulus.cloud_client import TenantScope, cloudservers, cloudstack, nova
from cumulus.constants import get_service_configs
from cumulus.effect_dispatcher import get_full_dispatcher
from cumulus.log import log, observer_factory, observer_factory_debug
from cumulus.models import cloudservers as cloudservers_models
from cumulus.models import cloudstack as cloudstack_models
from cumulus.models import nova as nova_models
from cumulus.util.config import load_config


def _detail(list_func):
    return partial(list_func, detail=True)


LISTINGS = {
    'nova': {
        'servers': nova.list_servers_in_detail,
        'flavors': nova.list_flavors_in_detail,
        'images': nova.list_images_in_detail,
        'extensions': nova.list_extensions,
    },
    'cloudservers': {
        'servers': _detail(cloudservers.list_servers),
        'flavors': _detail(cloudservers.list_flavors),
        'images': _detail(cloudservers.list_images),
    },
    'cloudstack': {
        'zones': cloudstack.list_zones,
        'networks': cloudstack.list_networks,
        'accounts': cloudstack.list_accounts,
        'users': cloudstack.list_users,
    },
}

CODECS = {
    'nova': nova_models.codec,
    'cloudservers': cloudservers_models.codec,
    'cloudstack': cloudstack_models.codec,
}


class ListOptions(usage.Options):
    """
    Options for ``cumulus list <provider> <resource>``.
    """
    synopsis = 'list <provider> <resource>'

    optParameters = [
        ["region", "r", None,
         "Nova region to list; every region in the catalog if not given."]
    ]

    def parseArgs(self, provider, resource):
        """
        Check that the provider has such a listing.
        """
        if provider not in LISTINGS:
            raise usage.UsageError(
                'Unknown provider {0!r}; choose from {1}'.format(
                    provider, ', '.join(sorted(LISTINGS))))
        if resource not in LISTINGS[provider]:
            raise usage.UsageError(
                'Unknown {0} resource {1!r}; choose from {2}'.format(
                    provider, resource, ', '.join(sorted(LISTINGS[provider]))))
        self['provider'] = provider
        self['resource'] = resource


class Options(usage.Options):
    """
    Options for the cumulus command.
    """
    optParameters = [
        ["config", "c", "config.json",
         "path to JSON configuration file."]
    ]

    optFlags = [
        ["debug", "d", "pretty-print log events."]
    ]

    subCommands = [
        ["list", None, ListOptions, "List the resources of a provider."]
    ]

    def postOptions(self):
        """
        A command is required.
        """
        if self.subCommand is None:
            raise usage.UsageError('Please specify a command.')


def listing_effect(config, provider, resource, region=None):
    """
    Build the Effect for a listing, scoped to the configured tenant where the
    provider needs one.

    Without a ``region``, Nova is listed in every region of the catalog and
    the result is a dict of region to listing.
    """
    list_func = LISTINGS[provider][resource]
    if provider == 'cloudstack':
        return list_func()
    if provider == 'nova':
        if region is None:
            eff = nova.configured_regions().on(
                partial(nova.in_each_region, list_func))
        else:
            eff = list_func(region=region)
    else:
        eff = list_func()
    return Effect(TenantScope(eff, config['identity'].get('tenant')))


def make_dispatcher(reactor, config):
    """
    Build the dispatcher for everything in the config file.
    """
    authenticator = None
    if 'identity' in config:
        authenticator = generate_authenticator(reactor, config['identity'])
    return get_full_dispatcher(reactor, authenticator, log,
                               get_service_configs(config),
                               config.get('cloudstack'))


def write_result(result, codec, stream):
    """
    Write the result of a listing as indented JSON.
    """
    stream.write(json.dumps(codec.to_primitive(result), indent=2,
                            sort_keys=True))
    stream.write('\n')


def main(reactor, *argv):
    """
    Parse the command line, run the listing, and print it to stdout.
    """
    options = Options()
    try:
        options.parseOptions(argv)
    except usage.UsageError as e:
        sys.stderr.write('{0}\n{1}\n'.format(options, e))
        raise SystemExit(2)

    config = load_config(options['config'])
    twisted_log.addObserver(
        observer_factory_debug() if options['debug'] else observer_factory())

    sub = options.subOptions
    provider = sub['provider']
    if provider != 'cloudstack' and 'identity' not in config:
        raise SystemExit('No identity section in {0}'.format(
            options['config']))
    if provider == 'cloudstack' and 'cloudstack' not in config:
        raise SystemExit('No cloudstack section in {0}'.format(
            options['config']))

    eff = listing_effect(config, provider, sub['resource'], sub['region'])
    d = perform(make_dispatcher(reactor, config), eff)
    d.addCallback(write_result, CODECS[provider], sys.stdout)
    return d


def run():
    """Entry point of the ``cumulus`` console script."""
    task.react(main, sys.argv[1:])
