"""
Tests for configuration loading and the error envelope.
"""
import pytest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from loyalty.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    check_secret_key,
    get_config,
    normalize_database_url,
    validate_config,
)


class TestConfig:

    def test_get_config(self):
        assert get_config('testing') is TestingConfig
        assert get_config('staging') is DevelopmentConfig

    def test_postgres_scheme_rewritten(self):
        assert normalize_database_url('postgres://u:p@db/loyalty') == 'postgresql://u:p@db/loyalty'
        assert normalize_database_url('sqlite:///x.db') == 'sqlite:///x.db'

    @pytest.mark.parametrize('key', ['', 'dev-key', 'short-but-random'])
    def test_weak_secret_keys_rejected(self, key):
        with pytest.raises(RuntimeError):
            check_secret_key(key)

    def test_strong_secret_key_accepted(self):
        check_secret_key('q8Zk2vN5rT1xW7mB4yH9jL3pF6cA0sEu')

    def test_non_production_not_validated(self):
        validate_config('development')

    def test_production_requires_database_url(self):
        with patch.object(ProductionConfig, 'SECRET_KEY', 'q8Zk2vN5rT1xW7mB4yH9jL3pF6cA0sEu'), \
                patch.object(ProductionConfig, 'SQLALCHEMY_DATABASE_URI', ''):
            with pytest.raises(RuntimeError):
                validate_config('production')


class TestErrorEnvelope:

    def test_unknown_route(self, client):
        response = client.get('/api/nowhere')
        assert response.status_code == 404
        assert response.get_json() == {'error': {'message': 'Not found', 'code': 'NOT_FOUND'}}

    def test_method_not_allowed(self, client):
        response = client.delete('/api/cards')
        assert response.status_code == 405
        assert response.get_json()['error']['code'] == 'METHOD_NOT_ALLOWED'

    def test_non_object_body(self, client, stamp_card):
        response = client.post(f'/api/cards/{stamp_card.id}/stamps', json=[1, 2])
        assert response.status_code == 400

    def test_database_error_hidden(self, client, brand_id):
        with patch('loyalty.services.program_service.LoyaltyProgramRepository.get_by_brand',
                   side_effect=OperationalError('SELECT', {}, Exception('connection lost'))):
            response = client.get(f'/api/programs?brand_id={brand_id}')

        assert response.status_code == 500
        error = response.get_json()['error']
        assert error['code'] == 'DATABASE_ERROR'
        assert 'connection lost' not in error['message']
