import pytest

from calcmcp.calculator import CalculatorSettings, create_calculator_server
from calcmcp.server import EnvelopeServer, ServerState


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fast_settings() -> CalculatorSettings:
    return CalculatorSettings(stream_step_delay=0, progress_step_delay=0)


@pytest.fixture
def calculator(fast_settings: CalculatorSettings) -> EnvelopeServer:
    return create_calculator_server(fast_settings, state=ServerState())
