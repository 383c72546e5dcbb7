"""Tests for the exception hierarchy and its messages."""

import pytest

from wiregraph.exceptions import (
    AmbiguousIdentifierError,
    ConfigurationError,
    ConflictingDeclarationError,
    CyclicDependencyError,
    MissingDescriptorError,
    UnknownConstructionKindError,
    UnresolvedDependencyError,
    WireGraphError,
)
from wiregraph.types import ConstructionKind


class Repository:
    pass


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            AmbiguousIdentifierError(str),
            ConflictingDeclarationError("a"),
            MissingDescriptorError("a"),
            UnresolvedDependencyError("a"),
            UnknownConstructionKindError("bogus"),
            CyclicDependencyError(["a", "a"]),
        ],
    )
    def test_every_error_is_a_wiregraph_error(self, error: Exception) -> None:
        assert isinstance(error, WireGraphError)

    def test_declaration_errors_are_configuration_errors(self) -> None:
        assert issubclass(AmbiguousIdentifierError, ConfigurationError)
        assert issubclass(ConflictingDeclarationError, ConfigurationError)
        assert not issubclass(MissingDescriptorError, ConfigurationError)


class TestMessages:
    def test_ambiguous_identifier(self) -> None:
        error = AmbiguousIdentifierError(str, "parameter 'dsn' of Database")

        assert error.identifier is str
        assert error.site == "parameter 'dsn' of Database"
        assert str(error) == (
            "Type str in parameter 'dsn' of Database requires a custom identifier, "
            "declare it with an explicit id, e.g. inject(id='my-id')."
        )

    def test_ambiguous_missing_annotation(self) -> None:
        assert str(AmbiguousIdentifierError(None)).startswith("Type None requires")

    def test_missing_descriptor_names_dependent(self) -> None:
        error = MissingDescriptorError(Repository, "service")

        assert str(error) == (
            f"No descriptor is declared for {Repository.__qualname__} (required by 'service')."
        )

    def test_unresolved_dependency(self) -> None:
        error = UnresolvedDependencyError("x")

        assert error.required_by is None
        assert str(error) == "Dependency 'x' is not registered."

    def test_unknown_kind(self) -> None:
        error = UnknownConstructionKindError(ConstructionKind.PROPERTY)

        assert error.kind is ConstructionKind.PROPERTY
        assert "PROPERTY" in str(error)

    def test_cycle_path(self) -> None:
        error = CyclicDependencyError(("a", Repository, "a"))

        assert error.path == ["a", Repository, "a"]
        assert str(error) == (
            f"Circular dependency detected: 'a' -> {Repository.__qualname__} -> 'a'."
        )

    def test_conflict(self) -> None:
        assert "'a' is already declared" in str(ConflictingDeclarationError("a"))
