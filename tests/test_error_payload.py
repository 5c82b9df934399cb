import unittest

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.core.errors import install_error_handlers


class _Payload(BaseModel):
    name: str
    capacity: int


def _build_app() -> FastAPI:
    app = FastAPI()
    install_error_handlers(app)

    @app.post('/items')
    def create_item(payload: _Payload):
        return {'name': payload.name}

    @app.get('/items/{item_id}')
    def get_item(item_id: str):
        raise HTTPException(status_code=404, detail='Item not found')

    @app.get('/boom')
    def boom():
        raise RuntimeError('database exploded')

    return app


class ErrorPayloadTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(_build_app(), raise_server_exceptions=False)

    @classmethod
    def tearDownClass(cls):
        cls.client.close()

    def test_http_exception_becomes_error_body(self):
        resp = self.client.get('/items/abc')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {'error': 'Item not found'})

    def test_unknown_route_uses_same_shape(self):
        resp = self.client.get('/nowhere')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {'error': 'Not Found'})

    def test_validation_error_is_400_naming_the_field(self):
        resp = self.client.post('/items', json={'name': 'Hall'})
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(resp.json()['error'].startswith('capacity: '))

        wrong_type = self.client.post('/items', json={'name': 'Hall', 'capacity': 'lots'})
        self.assertEqual(wrong_type.status_code, 400)
        self.assertIn('capacity', wrong_type.json()['error'])

    def test_unhandled_error_hides_details(self):
        resp = self.client.get('/boom')
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {'error': 'Internal server error'})


if __name__ == '__main__':
    unittest.main()
