"""Tests for Sandbox."""

import pytest

from capadapt.runtime.sandbox import Sandbox, SandboxError


class TestSandbox:
    """Test suite for foreign source compilation and execution."""

    def setup_method(self):
        """Set up test fixtures."""
        self.output = []
        self.sandbox = Sandbox()
        self.namespace = self.sandbox.create_namespace(self.output.append)

    def test_execute_defines_globals(self):
        """Executing source leaves its definitions in the namespace."""
        self.sandbox.execute("answer = 40 + 2", self.namespace)
        assert self.namespace["answer"] == 42

    def test_print_goes_to_writer(self):
        """print() inside foreign code is routed to the writer, not stdout."""
        self.sandbox.execute('print("Quack,", "Python!")', self.namespace)
        assert self.output == ["Quack, Python!\n"]

    def test_print_keyword_arguments(self):
        """sep and end are honored."""
        self.sandbox.execute('print("a", "b", sep="-", end="!")', self.namespace)
        assert self.output == ["a-b!"]

    def test_syntax_error(self):
        """Syntax errors become SandboxError."""
        with pytest.raises(SandboxError) as exc_info:
            self.sandbox.execute("def broken(:\n    pass", self.namespace)
        assert "Syntax error" in exc_info.value.message

    def test_runtime_error(self):
        """Exceptions raised while loading become SandboxError."""
        with pytest.raises(SandboxError) as exc_info:
            self.sandbox.execute("1 / 0", self.namespace)
        assert "ZeroDivisionError" in exc_info.value.message

    def test_validate_code(self):
        """validate_code reports syntax problems without executing."""
        is_valid, issues = self.sandbox.validate_code("x = 1")
        assert is_valid
        assert issues == []

        is_valid, issues = self.sandbox.validate_code("x = (")
        assert not is_valid
        assert len(issues) == 1


class TestRestrictedSandbox:
    """Tests for RestrictedPython mode."""

    def setup_method(self):
        self.output = []
        self.sandbox = Sandbox(restricted=True)
        self.namespace = self.sandbox.create_namespace(self.output.append)

    def test_class_with_printing_method(self):
        """Classes compile and their print() reaches the writer."""
        code = '''
class Duck:
    name = "Python"

    def speak(self):
        print("Quack, " + self.name + "!")
'''
        self.sandbox.execute(code, self.namespace)
        self.namespace["Duck"]().speak()
        assert "".join(self.output) == "Quack, Python!\n"

    def test_augmented_assignment(self):
        """Augmented assignment works on locals and globals."""
        code = '''
class Counter:
    def count(self, limit):
        total = 0
        for i in range(limit):
            total += i
        return total

runs = 1
runs *= 3
'''
        self.sandbox.execute(code, self.namespace)
        assert self.namespace["Counter"]().count(5) == 10
        assert self.namespace["runs"] == 3

    def test_whitelisted_import(self):
        """Whitelisted modules can be imported."""
        self.sandbox.execute("import math\nroot = math.sqrt(16)", self.namespace)
        assert self.namespace["root"] == 4.0

    def test_blocked_import(self):
        """Imports outside the whitelist are rejected."""
        with pytest.raises(SandboxError):
            self.sandbox.execute("import os\nfiles = os.listdir('.')", self.namespace)

    def test_underscore_names_rejected(self):
        """RestrictedPython refuses private attribute access at compile time."""
        is_valid, issues = self.sandbox.validate_code("x = ().__class__")
        assert not is_valid
        assert issues
