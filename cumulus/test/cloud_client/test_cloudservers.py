"""Tests for cumulus.cloud_client.cloudservers"""

import base64
import json

from twisted.trial.unittest import SynchronousTestCase

from cumulus.cloud_client import service_request
from cumulus.cloud_client.cloudservers import (
    create_server,
    delete_server,
    get_flavor,
    get_image,
    get_server,
    list_flavors,
    list_images,
    list_servers,
    reboot_server,
)
from cumulus.constants import ServiceType
from cumulus.models.cloudservers import (
    Addresses,
    Flavor,
    ImageStatus,
    ServerStatus,
)
from cumulus.test.cloud_client.test_init import perform_one_request
from cumulus.test.utils import fixture
from cumulus.util.http import APIError
from cumulus.util.pure_http import has_code


def servers_request(method, url, **kwargs):
    """The :obj:`ServiceRequest` intent a CloudServers call should make."""
    return service_request(ServiceType.CLOUD_SERVERS, method, url,
                           **kwargs).intent


def get_request(url):
    """A CloudServers GET, which also succeeds on a cached 203."""
    return servers_request('GET', url, success_pred=has_code(200, 203))


class ServerTests(SynchronousTestCase):
    """
    Tests for the server functions.
    """
    def test_list_servers(self):
        """
        Without ``detail``, ``/servers`` is listed.
        """
        body = {'servers': [{'id': 1234, 'name': 'sample-server'}]}
        [server] = perform_one_request(get_request('servers'),
                                       list_servers(), 200, json.dumps(body))
        self.assertEqual((server.id, server.name), (1234, 'sample-server'))
        self.assertIsNone(server.status)

    def test_list_servers_in_detail(self):
        """
        With ``detail``, ``/servers/detail`` is listed and every member read.
        """
        servers = perform_one_request(
            get_request('servers/detail'), list_servers(detail=True), 203,
            fixture('cloudservers_servers_detail.json'))
        self.assertEqual([s.id for s in servers], [1234, 5678])
        server = servers[0]
        self.assertEqual(server.image_id, 2)
        self.assertEqual(server.flavor_id, 1)
        self.assertEqual(server.host_id, 'e4d909c290d0fb1ca068ffaddf22cbd0')
        self.assertEqual(server.status, ServerStatus.BUILD)
        self.assertEqual(server.progress, 60)
        self.assertEqual(
            server.addresses,
            Addresses(public=['67.23.10.132', '67.23.10.131'],
                      private=['10.176.42.16']))
        self.assertEqual(server.metadata['Server Label'], 'Web Head 1')
        self.assertEqual(servers[1].status, ServerStatus.ACTIVE)

    def test_get_server(self):
        """
        A server is read from the ``server`` member.
        """
        body = {'server': {'id': 1234, 'name': 'a', 'status': 'ACTIVE'}}
        server = perform_one_request(get_request('servers/1234'),
                                     get_server(1234), 200, json.dumps(body))
        self.assertEqual(server.status, ServerStatus.ACTIVE)

    def test_get_server_not_found(self):
        """
        There is no server on a 404.
        """
        self.assertIsNone(perform_one_request(
            get_request('servers/1234'), get_server(1234), 404,
            {'itemNotFound': {'message': 'not found', 'code': 404}}))

    def test_get_server_errors(self):
        """
        Other errors are raised.
        """
        self.assertRaises(
            APIError, perform_one_request, get_request('servers/1234'),
            get_server(1234), 500, {'cloudServersFault': {'code': 500}})

    def test_create_server(self):
        """
        Creating a server sends the name, image, flavor and metadata, and
        results in the new server with its admin password.
        """
        intent = servers_request(
            'POST', 'servers',
            data={'server': {'name': 'web', 'imageId': 2, 'flavorId': 1,
                             'metadata': {'group': 'web'}}},
            success_pred=has_code(202), reauth_codes=(401,))
        body = {'server': {'id': 1234, 'name': 'web', 'imageId': 2,
                           'flavorId': 1, 'status': 'BUILD', 'progress': 0,
                           'adminPass': 'GFf1j9aP',
                           'addresses': {'public': ['67.23.10.138'],
                                         'private': ['10.176.42.19']}}}
        server = perform_one_request(
            intent, create_server('web', 2, 1, metadata={'group': 'web'}),
            202, json.dumps(body))
        self.assertEqual(server.admin_pass, 'GFf1j9aP')
        self.assertEqual(server.addresses.public, ['67.23.10.138'])
        self.assertNotIn('GFf1j9aP', repr(server))

    def test_create_server_personality(self):
        """
        Personality files are sent base64-encoded, sorted by path.
        """
        eff = create_server('web', 2, 1, personality={
            '/etc/motd': 'hello', '/etc/banner': b'\x00\x01'})
        self.assertEqual(
            eff.intent.data['server']['personality'],
            [{'path': '/etc/banner',
              'contents': base64.b64encode(b'\x00\x01').decode('ascii')},
             {'path': '/etc/motd', 'contents': 'aGVsbG8='}])

    def test_delete_server(self):
        """
        Deleting a server succeeds on a 202.
        """
        intent = servers_request('DELETE', 'servers/1234',
                                 success_pred=has_code(202),
                                 json_response=False)
        self.assertTrue(
            perform_one_request(intent, delete_server(1234), 202, ''))
        self.assertFalse(
            perform_one_request(intent, delete_server(1234), 404, ''))

    def test_reboot_server(self):
        """
        Rebooting posts a reboot action, soft unless asked otherwise.
        """
        def intent(type_):
            return servers_request(
                'POST', 'servers/1234/action',
                data={'reboot': {'type': type_}},
                success_pred=has_code(202), json_response=False)

        self.assertIsNone(
            perform_one_request(intent('SOFT'), reboot_server(1234), 202, ''))
        self.assertIsNone(
            perform_one_request(intent('HARD'),
                                reboot_server(1234, hard=True), 202, ''))

    def test_reboot_server_errors(self):
        """
        A reboot that is not accepted raises :class:`APIError`.
        """
        intent = servers_request(
            'POST', 'servers/1234/action',
            data={'reboot': {'type': 'SOFT'}},
            success_pred=has_code(202), json_response=False)
        self.assertRaises(APIError, perform_one_request, intent,
                          reboot_server(1234), 409, '')


class FlavorAndImageTests(SynchronousTestCase):
    """
    Tests for the flavor and image functions.
    """
    def test_list_flavors(self):
        """
        Flavors are read with their sizes.
        """
        body = {'flavors': [{'id': 1, 'name': '256 MB Server', 'ram': 256,
                             'disk': 10}]}
        self.assertEqual(
            perform_one_request(get_request('flavors/detail'),
                                list_flavors(detail=True), 200,
                                json.dumps(body)),
            [Flavor(id=1, name='256 MB Server', ram=256, disk=10)])

    def test_get_flavor(self):
        """
        A flavor is read from the ``flavor`` member, or is ``None`` on a 404.
        """
        body = {'flavor': {'id': 1, 'name': '256 MB Server'}}
        self.assertEqual(
            perform_one_request(get_request('flavors/1'), get_flavor(1), 200,
                                json.dumps(body)),
            Flavor(id=1, name='256 MB Server'))
        self.assertIsNone(perform_one_request(
            get_request('flavors/1'), get_flavor(1), 404, ''))

    def test_list_images(self):
        """
        Images are read with their dates and the server they were taken
        from.
        """
        images = perform_one_request(
            get_request('images/detail'), list_images(detail=True), 200,
            fixture('cloudservers_images_detail.json'))
        self.assertEqual([i.status for i in images],
                         [ImageStatus.ACTIVE, ImageStatus.SAVING])
        self.assertEqual(images[1].server_id, 12)
        self.assertEqual(images[0].created.year, 2010)

    def test_get_image(self):
        """
        An image is read from the ``image`` member, or is ``None`` on a 404.
        """
        body = {'image': {'id': 2, 'name': 'CentOS 5.2',
                          'status': 'DELETED_SOMEHOW'}}
        image = perform_one_request(get_request('images/2'), get_image(2),
                                    200, json.dumps(body))
        self.assertEqual(image.status, ImageStatus.UNRECOGNIZED)
        self.assertIsNone(perform_one_request(
            get_request('images/2'), get_image(2), 404, ''))
