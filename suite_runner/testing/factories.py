"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories.pydantic_factory import ModelFactory

from suite_runner.models.descriptor import StepResult, TestDescriptor, TestReport


class StepResultFactory(ModelFactory[StepResult]):
    """Factory for StepResult."""

    message = None


class TestReportFactory(ModelFactory[TestReport]):
    """Factory for TestReport."""

    __test__ = False

    results = Use(list[StepResult])


class TestDescriptorFactory(ModelFactory[TestDescriptor]):
    """Factory for TestDescriptor."""

    __test__ = False

    status = "idle"
    results = Use(list[StepResult])
    actions = 0
