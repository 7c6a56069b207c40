import json

from django.test import TestCase
from django.contrib.auth import get_user_model
from django.urls import reverse

from teachers.models import Teacher

User = get_user_model()


class UserManagerTests(TestCase):
    """Tests for the custom UserManager."""

    def test_create_user(self):
        """Test creating a regular user with email."""
        user = User.objects.create_user(
            email='test@example.com',
            password='testpass123'
        )
        self.assertEqual(user.email, 'test@example.com')
        self.assertTrue(user.check_password('testpass123'))
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_superuser)
        self.assertTrue(user.is_active)

    def test_create_user_without_email_raises_error(self):
        """Test that creating a user without email raises ValueError."""
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='testpass123')

    def test_create_user_normalizes_email(self):
        """Test that email is normalized (lowercase domain)."""
        user = User.objects.create_user(
            email='test@EXAMPLE.COM',
            password='testpass123'
        )
        self.assertEqual(user.email, 'test@example.com')

    def test_create_superuser(self):
        """Test creating a superuser."""
        user = User.objects.create_superuser(
            email='admin@example.com',
            password='adminpass123'
        )
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)

    def test_create_superuser_without_is_staff_raises_error(self):
        """Test that superuser must have is_staff=True."""
        with self.assertRaises(ValueError):
            User.objects.create_superuser(
                email='admin@example.com',
                password='adminpass123',
                is_staff=False
            )

    def test_display_name_defaults_to_email(self):
        user = User.objects.create_user(email='clerk@school.com', password='pass')
        self.assertEqual(user.display_name, 'clerk@school.com')

    def test_display_name_uses_teacher_profile(self):
        user = User.objects.create_user(email='teacher@school.com', password='pass')
        Teacher.objects.create(first_name='Marie', last_name='Owona', title='MS', staff_id='T-9', user=user)
        user = User.objects.get(pk=user.pk)
        self.assertEqual(user.display_name, 'Ms. Marie Owona')


class LoginViewTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(email='staff@school.com', password='testpass123')

    def _post(self, url_name, payload):
        return self.client.post(
            reverse(url_name),
            data=json.dumps(payload),
            content_type='application/json'
        )

    def test_login_success(self):
        response = self._post('accounts:login', {'email': 'staff@school.com', 'password': 'testpass123'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['user']['email'], 'staff@school.com')
        self.assertEqual(response.json()['user']['name'], 'staff@school.com')

    def test_login_bad_password(self):
        response = self._post('accounts:login', {'email': 'staff@school.com', 'password': 'wrong'})
        self.assertEqual(response.status_code, 401)

    def test_login_missing_fields(self):
        response = self._post('accounts:login', {'email': 'staff@school.com'})
        self.assertEqual(response.status_code, 400)

    def test_login_rejects_get(self):
        response = self.client.get(reverse('accounts:login'))
        self.assertEqual(response.status_code, 405)
