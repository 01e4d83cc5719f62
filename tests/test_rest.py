import asyncio
import json
import unittest

import aiohttp

from catalog_admin.domain.errors import BackendError, BackendErrorCode
from catalog_admin.infrastructure.rest import (
    RestBlobStorage,
    RestDataService,
    RestSession,
    classify,
    error_from_response,
    transport_error,
)
from catalog_admin.infrastructure.rest.client import filter_literal


class FakeResponse:
    def __init__(self, status: int, payload=None):
        self.status = status
        self._text = "" if payload is None else (payload if isinstance(payload, str) else json.dumps(payload))

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeClientSession:
    def __init__(self):
        self.requests = []
        self.responses: list = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeRestSession(RestSession):
    def __init__(self):
        super().__init__("https://db.example.com/", "anon-key")
        self.client = FakeClientSession()

    def get(self):
        return self.client


class ErrorMappingTests(unittest.TestCase):
    def test_known_codes(self):
        self.assertEqual(classify("42P01"), BackendErrorCode.RELATION_MISSING)
        self.assertEqual(classify("PGRST205"), BackendErrorCode.RELATION_MISSING)
        self.assertEqual(classify("23503"), BackendErrorCode.FOREIGN_KEY_VIOLATION)
        self.assertEqual(classify("23505"), BackendErrorCode.UNIQUENESS_VIOLATION)
        self.assertEqual(classify("PGRST301"), BackendErrorCode.TIMEOUT)
        self.assertEqual(classify("57014"), BackendErrorCode.TIMEOUT)
        self.assertEqual(classify("PGRST116"), BackendErrorCode.NOT_FOUND)

    def test_timeout_in_message(self):
        self.assertEqual(classify("XX000", "Request Timeout reached"), BackendErrorCode.TIMEOUT)
        self.assertEqual(classify(None, "weird"), BackendErrorCode.UNKNOWN)

    def test_error_from_response(self):
        error = error_from_response(409, {"code": "23505", "message": "duplicate key value"})
        self.assertEqual(error.code, BackendErrorCode.UNIQUENESS_VIOLATION)
        self.assertEqual(error.raw_code, "23505")
        self.assertEqual(error.status, 409)
        self.assertEqual(error.message, "duplicate key value")

    def test_error_without_payload(self):
        error = error_from_response(502, None)
        self.assertEqual(error.code, BackendErrorCode.UNKNOWN)
        self.assertIn("502", error.message)

    def test_transport_errors_are_timeouts(self):
        self.assertEqual(transport_error(asyncio.TimeoutError()).code, BackendErrorCode.TIMEOUT)
        self.assertEqual(transport_error(aiohttp.ClientConnectionError("refused")).code, BackendErrorCode.TIMEOUT)

    def test_filter_literal(self):
        self.assertEqual(filter_literal(True), "eq.true")
        self.assertEqual(filter_literal("abc"), "eq.abc")
        self.assertEqual(filter_literal(None), "is.null")


class RestDataServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.session = FakeRestSession()
        self.client = self.session.client
        self.service = RestDataService(self.session)

    async def test_select_builds_postgrest_query(self):
        self.client.responses.append(FakeResponse(200, [{"id": 1, "tipo": "Incolor"}]))
        response = await self.service.select("pv_vidro", filters={"ativo": True}, order="tipo")

        self.assertTrue(response.ok)
        self.assertEqual(response.data, [{"id": 1, "tipo": "Incolor"}])
        method, url, kwargs = self.client.requests[0]
        self.assertEqual(method, "GET")
        self.assertEqual(url, "https://db.example.com/rest/v1/pv_vidro")
        self.assertEqual(kwargs["params"], {"select": "*", "ativo": "eq.true", "order": "tipo.asc"})
        self.assertEqual(kwargs["headers"]["apikey"], "anon-key")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer anon-key")

    async def test_single_select_asks_for_object(self):
        self.client.responses.append(FakeResponse(200, {"id": "u"}))
        await self.service.select("usuarios", filters={"id": "u"}, columns="id,nome,email", single=True)
        headers = self.client.requests[0][2]["headers"]
        self.assertEqual(headers["Accept"], "application/vnd.pgrst.object+json")

    async def test_insert_returns_representation(self):
        self.client.responses.append(FakeResponse(201, [{"id": 9, "nome": "RO-1"}]))
        response = await self.service.insert("trilhos", {"nome": "RO-1"})

        self.assertEqual(response.data, [{"id": 9, "nome": "RO-1"}])
        method, _, kwargs = self.client.requests[0]
        self.assertEqual(method, "POST")
        self.assertEqual(kwargs["json"], {"nome": "RO-1"})
        self.assertEqual(kwargs["headers"]["Prefer"], "return=representation")

    async def test_update_and_delete_match_by_id(self):
        self.client.responses.extend([FakeResponse(200, []), FakeResponse(204)])
        await self.service.update("pv_vidro", {"ativo": False}, match_id="3")
        await self.service.delete("puxadores", match_id="7")

        self.assertEqual(self.client.requests[0][0], "PATCH")
        self.assertEqual(self.client.requests[0][2]["params"], {"id": "eq.3"})
        self.assertEqual(self.client.requests[1][0], "DELETE")
        self.assertEqual(self.client.requests[1][2]["params"], {"id": "eq.7"})

    async def test_backend_error_is_mapped(self):
        self.client.responses.append(
            FakeResponse(404, {"code": "42P01", "message": 'relation "public.trilhos" does not exist'})
        )
        response = await self.service.select("trilhos")

        self.assertFalse(response.ok)
        self.assertEqual(response.error.code, BackendErrorCode.RELATION_MISSING)

    async def test_transport_failure_is_timeout(self):
        self.client.responses.append(aiohttp.ClientConnectionError("refused"))
        response = await self.service.select("trilhos")
        self.assertEqual(response.error.code, BackendErrorCode.TIMEOUT)


class RestBlobStorageTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.session = FakeRestSession()
        self.client = self.session.client
        self.storage = RestBlobStorage(self.session)

    async def test_list_and_create_bucket(self):
        self.client.responses.extend([FakeResponse(200, [{"id": "avatars", "name": "avatars"}]), FakeResponse(200, {})])

        self.assertEqual(await self.storage.list_buckets(), ["avatars"])
        await self.storage.create_bucket("imagens")
        self.assertEqual(self.client.requests[1][2]["json"], {"id": "imagens", "name": "imagens", "public": True})

    async def test_upload_and_public_url(self):
        self.client.responses.append(FakeResponse(200, {"Key": "imagens/trilhos/a.png"}))
        await self.storage.upload("imagens", "trilhos/a.png", b"data", content_type="image/png")

        method, url, kwargs = self.client.requests[0]
        self.assertEqual(url, "https://db.example.com/storage/v1/object/imagens/trilhos/a.png")
        self.assertEqual(kwargs["headers"]["Content-Type"], "image/png")
        self.assertEqual(
            self.storage.public_url("imagens", "trilhos/a.png"),
            "https://db.example.com/storage/v1/object/public/imagens/trilhos/a.png",
        )

    async def test_failures_raise_backend_error(self):
        self.client.responses.append(FakeResponse(403, {"statusCode": "403", "error": "Unauthorized", "message": "new row violates row-level security policy"}))
        with self.assertRaises(BackendError) as ctx:
            await self.storage.create_bucket("imagens")
        self.assertEqual(ctx.exception.status, 403)


if __name__ == "__main__":
    unittest.main()
