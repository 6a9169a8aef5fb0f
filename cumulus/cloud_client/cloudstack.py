"""
CloudStack API client, using Effect.

CloudStack has no token authentication or service catalog: every request is
a GET of ``<endpoint>?command=...`` whose query string is signed with the
user's secret key.  Requests are expressed as :obj:`CloudStackRequest`
intents, which :func:`get_cloudstack_dispatcher` signs and turns into
:obj:`cumulus.util.pure_http.Request` effects.
"""

import base64
import hashlib
import hmac
import json
from functools import partial
from urllib.parse import quote

import attr

from effect import Effect, TypeDispatcher, catch, sync_performer

from pyrsistent import pmap

from toolz.dicttoolz import merge

from cumulus.cloud_client import return_on_not_found
from cumulus.codec import ListOf
from cumulus.models.cloudstack import (
    Account,
    AsyncCreateResponse,
    AsyncJob,
    Network,
    User,
    Zone,
    codec,
)
from cumulus.util.http import APIError
from cumulus.util.pure_http import (
    add_error_handling,
    add_json_response,
    has_code,
    request,
)


class CloudStackError(APIError):
    """
    An error reported by CloudStack in a response body::

        {"<command>response": {"errorcode": 431, "errortext": "..."}}

    :ivar int error_code: CloudStack's ``errorcode``.
    :ivar str error_text: CloudStack's ``errortext``.
    """
    def __init__(self, error_code, error_text, code=None, body=None,
                 headers=None):
        APIError.__init__(self, error_code if code is None else code,
                          body, headers)
        self.args = ('CloudStack error {0}: {1}'.format(error_code,
                                                        error_text),)
        self.error_code = error_code
        self.error_text = error_text

    def __eq__(self, other):
        return (isinstance(other, CloudStackError) and
                (self.error_code, self.error_text, self.code) ==
                (other.error_code, other.error_text, other.code))

    def __ne__(self, other):
        return not self == other

    __hash__ = APIError.__hash__


@attr.s
class CloudStackRequest(object):
    """
    An intent to run a CloudStack API command.

    Results in the object CloudStack wraps in ``<command>response``, with the
    command name lower-cased.
    """
    command = attr.ib()
    params = attr.ib(default=pmap(), converter=pmap)
    success_pred = attr.ib(default=has_code(200))
    log = attr.ib(default=None)

    def intent_result_pred(self, result):
        """Check that the result is the unwrapped response object."""
        return isinstance(result, dict)


def cloudstack_request(command, params=None, success_pred=has_code(200),
                       log=None):
    """
    Return an Effect of a :obj:`CloudStackRequest`.

    :param str command: the API command, e.g. ``listZones``.
    :param dict params: the command's parameters; ``None`` values are
        dropped, booleans are sent as ``true``/``false``.
    """
    params = {k: v for k, v in (params or {}).items() if v is not None}
    return Effect(CloudStackRequest(command=command, params=params,
                                    success_pred=success_pred, log=log))


def _stringify(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _encode(value):
    return quote(value, safe='')


def sign_query(params, secret_key):
    """
    Build a signed CloudStack query string.

    The parameters are sorted by lower-cased name and URL-encoded (spaces as
    ``%20``); the lower-cased result is signed with HMAC-SHA1 under the
    secret key, and the base64 digest is appended as ``signature``.

    :param dict params: all parameters, including ``command``, ``apiKey`` and
        ``response``.
    :param str secret_key: the user's secret key.
    :return: the query string, without a leading ``?``.
    """
    pairs = sorted(((k, _stringify(v)) for k, v in params.items()),
                   key=lambda kv: kv[0].lower())
    query = '&'.join('{0}={1}'.format(_encode(k), _encode(v))
                     for k, v in pairs)
    digest = hmac.new(secret_key.encode('utf-8'),
                      query.lower().encode('utf-8'),
                      hashlib.sha1).digest()
    signature = base64.b64encode(digest).decode('ascii')
    return '{0}&signature={1}'.format(query, _encode(signature))


def unwrap_response(command, body):
    """
    Return the object inside ``<command>response``.

    :raise CloudStackError: if it reports an error.
    """
    inner = (body or {}).get(command.lower() + 'response', {})
    if 'errorcode' in inner:
        raise CloudStackError(inner['errorcode'], inner.get('errortext'))
    return inner


def _parse_error(command, api_error):
    """
    Turn an :class:`APIError` with a CloudStack error body into a
    :class:`CloudStackError`; re-raise anything else.
    """
    try:
        body = json.loads(api_error.body)
        inner = body[command.lower() + 'response']
        error_code, error_text = inner['errorcode'], inner.get('errortext')
    except (ValueError, TypeError, KeyError, AttributeError):
        raise api_error
    raise CloudStackError(error_code, error_text, code=api_error.code,
                          body=api_error.body, headers=api_error.headers)


def concretize_cloudstack_request(endpoint, api_key, secret_key, log,
                                  cs_request):
    """
    Translate a :obj:`CloudStackRequest` into a signed GET of the endpoint.

    :param str endpoint: the API URL, e.g. ``http://host:8080/client/api``.
    """
    if cs_request.log is not None:
        log = cs_request.log
    params = merge(dict(cs_request.params),
                   {'command': cs_request.command,
                    'apiKey': api_key,
                    'response': 'json'})
    url = '{0}?{1}'.format(endpoint, sign_query(params, secret_key))

    request_ = add_json_response(
        add_error_handling(cs_request.success_pred, request))
    eff = request_('GET', url, headers={'accept': ['application/json']},
                   log=log)
    return (eff
            .on(error=catch(APIError, partial(_parse_error,
                                               cs_request.command)))
            .on(lambda result: unwrap_response(cs_request.command,
                                               result[1])))


def get_cloudstack_dispatcher(config, log=None):
    """
    Get a dispatcher that performs :obj:`CloudStackRequest` intents.

    :param dict config: the ``cloudstack`` config section, with
        ``endpoint``, ``api_key`` and ``secret_key``.
    """
    @sync_performer
    def perform_cloudstack_request(dispatcher, cs_request):
        return concretize_cloudstack_request(
            config['endpoint'], config['api_key'], config['secret_key'],
            log, cs_request)

    return TypeDispatcher({CloudStackRequest: perform_cloudstack_request})


def _read_list(member, type_):
    return lambda inner: codec.from_primitive(inner.get(member, []),
                                              ListOf(type_))


def _read_one(member, type_):
    return lambda inner: codec.from_primitive(inner.get(member), type_)


def _first_or_none(items):
    return items[0] if items else None


# ----- Accounts -----

def list_accounts(**filters):
    """
    List accounts.  ``filters`` are passed as-is, using CloudStack's
    parameter names, e.g. ``domainid`` or ``name``.

    :return: Effect of a list of :class:`Account`.
    """
    return cloudstack_request('listAccounts', filters).on(
        _read_list('account', Account))


def get_account(account_id):
    """
    :return: Effect of an :class:`Account`, or ``None`` if there is none with
        that id.
    """
    return (list_accounts(id=account_id)
            .on(_first_or_none)
            .on(error=return_on_not_found(None)))


def create_account(name, account_type, email, first_name, last_name,
                   hashed_password, domain_id=None):
    """
    Create an account along with its first user, named ``name``.

    :param Account.Type account_type: the kind of account.
    :param str hashed_password: the MD5 hash of the user's password.
    :return: Effect of the new :class:`Account`.
    """
    params = {'username': name,
              'accounttype': account_type.value,
              'email': email,
              'firstname': first_name,
              'lastname': last_name,
              'password': hashed_password,
              'domainid': domain_id}
    return cloudstack_request('createAccount', params).on(
        _read_one('account', Account))


def delete_account(account_id):
    """
    Delete an account and everything it owns.  This is asynchronous.

    :return: Effect of the id of the job doing the deletion.
    """
    return cloudstack_request('deleteAccount', {'id': account_id}).on(
        lambda inner: inner.get('jobid'))


# ----- Users -----

def list_users(**filters):
    """
    List users.  ``filters`` use CloudStack's parameter names.

    :return: Effect of a list of :class:`User`.
    """
    return cloudstack_request('listUsers', filters).on(
        _read_list('user', User))


def get_user(user_id):
    """
    :return: Effect of a :class:`User`, or ``None``.
    """
    return (list_users(id=user_id)
            .on(_first_or_none)
            .on(error=return_on_not_found(None)))


def create_user(username, account, email, hashed_password, first_name,
                last_name, domain_id=None):
    """
    Create a user in an existing account.

    :return: Effect of the new :class:`User`.
    """
    params = {'username': username,
              'account': account,
              'email': email,
              'password': hashed_password,
              'firstname': first_name,
              'lastname': last_name,
              'domainid': domain_id}
    return cloudstack_request('createUser', params).on(
        _read_one('user', User))


def delete_user(user_id):
    """
    :return: Effect of ``True`` if CloudStack reports success.
    """
    return cloudstack_request('deleteUser', {'id': user_id}).on(
        lambda inner: _stringify(inner.get('success')) == 'true')


# ----- Compute -----

def list_zones(**filters):
    """
    List zones, e.g. ``list_zones(available=True)``.

    :return: Effect of a list of :class:`Zone`.
    """
    return cloudstack_request('listZones', filters).on(
        _read_list('zone', Zone))


def get_zone(zone_id):
    """
    :return: Effect of a :class:`Zone`, or ``None``.
    """
    return (list_zones(id=zone_id)
            .on(_first_or_none)
            .on(error=return_on_not_found(None)))


def list_networks(**filters):
    """
    List networks, e.g. ``list_networks(zoneid=zone.id)``.

    :return: Effect of a list of :class:`Network`.
    """
    return cloudstack_request('listNetworks', filters).on(
        _read_list('network', Network))


def deploy_virtual_machine(zone_id, service_offering_id, template_id,
                           options=None):
    """
    Start creating a virtual machine.

    :param DeployVirtualMachineOptions options: further parameters.
    :return: Effect of an :class:`AsyncCreateResponse`; poll its job with
        :func:`query_async_job_result`.
    """
    if options is None:
        options = DeployVirtualMachineOptions()
    params = merge(options.build_query_params(),
                   {'zoneid': zone_id,
                    'serviceofferingid': service_offering_id,
                    'templateid': template_id})
    return cloudstack_request('deployVirtualMachine', params).on(
        lambda inner: codec.from_primitive(inner, AsyncCreateResponse))


def query_async_job_result(job_id):
    """
    :return: Effect of the :class:`AsyncJob`.
    """
    return cloudstack_request('queryAsyncJobResult', {'jobid': job_id}).on(
        lambda inner: codec.from_primitive(inner, AsyncJob))


@attr.s(frozen=True)
class DeployVirtualMachineOptions(object):
    """
    Optional parameters of ``deployVirtualMachine``.  Immutable: every
    builder method returns a new instance.

    >>> DeployVirtualMachineOptions().keypair('mykey').display_name('web')
    """
    params = attr.ib(default=pmap(), converter=pmap)

    def _with(self, **params):
        return attr.evolve(self, params=self.params.update(params))

    def network_id(self, network_id):
        """Deploy onto a single network."""
        return self._with(networkids=str(network_id))

    def network_ids(self, network_ids):
        """Deploy onto several networks; the first is the default."""
        return self._with(networkids=','.join(str(n) for n in network_ids))

    def security_group_ids(self, security_group_ids):
        """Security groups to apply.  Only valid in basic zones."""
        return self._with(securitygroupids=','.join(
            str(s) for s in security_group_ids))

    def ip_on_default_network(self, ip):
        """A fixed IP on the default network."""
        return self._with(ipaddress=ip)

    def ips_to_networks(self, ips_to_networks):
        """
        Fixed IPs per network.

        :param ips_to_networks: mapping of IP address to network id.
        """
        params = {}
        for i, (ip, network_id) in enumerate(sorted(ips_to_networks.items())):
            params['iptonetworklist[{0}].ip'.format(i)] = ip
            params['iptonetworklist[{0}].networkid'.format(i)] = str(
                network_id)
        return self._with(**params)

    def keypair(self, name):
        """The SSH key pair to install."""
        return self._with(keypair=name)

    def display_name(self, display_name):
        return self._with(displayname=display_name)

    def name(self, name):
        """The host name of the virtual machine."""
        return self._with(name=name)

    def group(self, group):
        return self._with(group=group)

    def user_data(self, data):
        """
        User data for the virtual machine, base64-encoded for sending.

        :param data: ``bytes``, or ``str`` which is encoded as UTF-8.
        """
        if isinstance(data, str):
            data = data.encode('utf-8')
        return self._with(userdata=base64.b64encode(data).decode('ascii'))

    def account_in_domain(self, account, domain_id):
        """Deploy on behalf of an account; needs an admin key."""
        return self._with(account=account, domainid=domain_id)

    def build_query_params(self):
        """
        :return: the query parameters as a plain ``dict``.
        """
        return dict(self.params)
