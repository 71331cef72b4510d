"""Test suite package marker."""

import pytest

# Ensure the shared fake client is assertion-rewritten before import.
pytest.register_assert_rewrite("tests.fake_s3")
