"""Unit tests for /users routes."""

import unittest
from unittest.mock import MagicMock, patch
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi.testclient import TestClient
from api.main import app
from api.dependencies import get_user_repo
from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import StorageError
from services.user_service import verify_password


class UsersRouteTestCase(unittest.TestCase):
    """Routes wired to an in-memory repository."""

    def setUp(self):
        self.client = TestClient(app)
        self.repo = FakeUserRepository()
        app.dependency_overrides[get_user_repo] = lambda: self.repo
        patcher = patch('services.user_service.BCRYPT_ROUNDS', 4)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        """Clean up dependency overrides."""
        app.dependency_overrides.clear()

    def _create(self, name='Alice', email='alice@example.com', password='secret-pw') -> dict:
        response = self.client.post("/users", json={"name": name, "email": email, "password": password})
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _use_failing_repo(self) -> MagicMock:
        failing = MagicMock()
        for method in ['get_all', 'get_by_id', 'delete', 'update', 'create_if_email_unique']:
            getattr(failing, method).side_effect = StorageError("io")
        app.dependency_overrides[get_user_repo] = lambda: failing
        return failing


class TestCreateUser(UsersRouteTestCase):

    def test_create_user_returns_201_without_password(self):
        data = self._create()

        self.assertEqual(set(data), {'id', 'name', 'email'})
        self.assertEqual(data['name'], 'Alice')
        self.assertEqual(data['email'], 'alice@example.com')
        self.assertIn(data['id'], self.repo.store)

    def test_create_user_stores_hashed_password(self):
        data = self._create(password='secret-pw')

        stored = self.repo.get_by_id(data['id'])
        self.assertNotEqual(stored.password_hash, 'secret-pw')
        self.assertTrue(verify_password('secret-pw', stored.password_hash))

    def test_create_user_missing_field_returns_400(self):
        response = self.client.post("/users", json={"name": "Alice", "password": "pw"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['detail'], "Email is required")
        self.assertEqual(self.repo.store, {})

    def test_create_user_invalid_json_returns_400(self):
        response = self.client.post(
            "/users",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['detail'], "Invalid request payload")

    def test_create_user_wrong_type_returns_400(self):
        response = self.client.post("/users", json={"name": 123, "email": "a@b.c", "password": "pw"})

        self.assertEqual(response.status_code, 400)

    def test_create_user_duplicate_email_returns_409(self):
        self._create()

        response = self.client.post(
            "/users", json={"name": "Other", "email": "alice@example.com", "password": "pw"}
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(len(self.repo.store), 1)

    def test_create_user_storage_failure_returns_500(self):
        self._use_failing_repo()

        response = self.client.post(
            "/users", json={"name": "Alice", "email": "alice@example.com", "password": "pw"}
        )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['detail'], "Internal server error")


class TestReadUsers(UsersRouteTestCase):

    def test_get_user(self):
        created = self._create()

        response = self.client.get(f"/users/{created['id']}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), created)

    def test_get_user_not_found(self):
        response = self.client.get("/users/does-not-exist")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['detail'], "User not found")

    def test_get_all_users(self):
        first = self._create()
        second = self._create(name='Bob', email='bob@example.com')

        response = self.client.get("/users")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(sorted(u['id'] for u in data), sorted([first['id'], second['id']]))
        for user in data:
            self.assertNotIn('password', user)
            self.assertNotIn('password_hash', user)

    def test_get_all_users_empty(self):
        response = self.client.get("/users")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_get_all_users_storage_failure_returns_500(self):
        self._use_failing_repo()

        response = self.client.get("/users")

        self.assertEqual(response.status_code, 500)


class TestSearchUsers(UsersRouteTestCase):

    def setUp(self):
        super().setUp()
        self.alice = self._create()
        self.bob = self._create(name='Bob', email='bob@corp.io')

    def test_search_by_name(self):
        response = self.client.get("/users/search", params={"name": "ALI"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [self.alice])

    def test_search_by_email(self):
        response = self.client.get("/users/search", params={"email": "corp"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [self.bob])

    def test_search_without_params_returns_400(self):
        response = self.client.get("/users/search")

        self.assertEqual(response.status_code, 400)

    def test_search_with_empty_params_returns_400(self):
        response = self.client.get("/users/search?name=&email=")

        self.assertEqual(response.status_code, 400)

    def test_search_no_match_returns_204(self):
        response = self.client.get("/users/search", params={"name": "zzz"})

        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.content, b"")

    def test_search_is_not_captured_by_id_route(self):
        """/users/search must not be treated as a user id."""
        response = self.client.get("/users/search", params={"name": "bob"})

        self.assertEqual(response.status_code, 200)


class TestUpdateUser(UsersRouteTestCase):

    def test_update_name_only(self):
        created = self._create()
        old_hash = self.repo.get_by_id(created['id']).password_hash

        response = self.client.put(f"/users/{created['id']}", json={"name": "X"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "User updated successfully"})
        stored = self.repo.get_by_id(created['id'])
        self.assertEqual(stored.name, 'X')
        self.assertEqual(stored.email, 'alice@example.com')
        self.assertEqual(stored.password_hash, old_hash)

    def test_update_password(self):
        created = self._create(password='old-pw')

        response = self.client.put(f"/users/{created['id']}", json={"password": "new-pw"})

        self.assertEqual(response.status_code, 200)
        stored = self.repo.get_by_id(created['id'])
        self.assertTrue(verify_password('new-pw', stored.password_hash))
        self.assertFalse(verify_password('old-pw', stored.password_hash))

    def test_update_not_found(self):
        response = self.client.put("/users/missing", json={"name": "X"})

        self.assertEqual(response.status_code, 404)

    def test_update_invalid_payload_returns_400(self):
        created = self._create()

        response = self.client.put(
            f"/users/{created['id']}",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        self.assertEqual(response.status_code, 400)

    def test_update_email_conflict_returns_409(self):
        created = self._create()
        self._create(name='Bob', email='bob@example.com')

        response = self.client.put(f"/users/{created['id']}", json={"email": "bob@example.com"})

        self.assertEqual(response.status_code, 409)


class TestDeleteUser(UsersRouteTestCase):

    def test_delete_user(self):
        created = self._create()

        response = self.client.delete(f"/users/{created['id']}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "User deleted successfully"})
        self.assertEqual(self.client.get(f"/users/{created['id']}").status_code, 404)

    def test_delete_user_not_found(self):
        response = self.client.delete("/users/missing")

        self.assertEqual(response.status_code, 404)

    def test_delete_storage_failure_returns_500(self):
        self._use_failing_repo()

        response = self.client.delete("/users/u-1")

        self.assertEqual(response.status_code, 500)


if __name__ == '__main__':
    unittest.main()
