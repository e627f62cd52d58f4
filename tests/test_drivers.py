import logging
from unittest.mock import MagicMock

import pytest
import serial

from microwave_link.core.status import Status
from microwave_link.drivers.arduino_driver import (
    DEFAULT_ACK_TIMEOUT_S,
    KEYPRESS_SETTLE_S,
    OPEN_READ_TIMEOUT_S,
    READ_POLL_S,
    SerialLink,
    normalize_port_name,
)
from microwave_link.drivers.controller_driver import (
    AckTimeoutError,
    BadHandleError,
    ControllerDriverError,
    OpenFailureError,
    TransportError,
)


def test_press_waits_for_second_ok(scripted_link, clock):
    link, ser = scripted_link([(0, b"OK: pressing 1\r\n"), (0.1, b"OK\r\n")])

    assert link.send_command("press 1") == "OK"
    assert ser.writes == [b"press 1\n"]
    assert clock.sleeps[-1] == KEYPRESS_SETTLE_S


def test_press_with_only_first_ack_times_out(scripted_link, clock):
    link, ser = scripted_link([(0, b"OK: pressing 1\r\n")])
    start = clock.now

    with pytest.raises(AckTimeoutError) as excinfo:
        link.send_command("press 1", timeout_s=2.0)

    assert excinfo.value.status == Status.TIMEOUT
    assert clock.now - start == pytest.approx(2.0)
    assert KEYPRESS_SETTLE_S not in clock.sleeps


def test_default_ack_timeout(scripted_link, clock):
    link, _ = scripted_link()
    start = clock.now
    with pytest.raises(AckTimeoutError):
        link.send_command("status")
    assert clock.now - start == pytest.approx(DEFAULT_ACK_TIMEOUT_S)


def test_status_is_single_ack_and_leaves_later_lines(scripted_link):
    link, ser = scripted_link([(0, b"Status: idle\r\nOK: released\r\n")])

    assert link.send_command("status") == "Status: idle"
    # The trailing line is still buffered and satisfies the next command
    assert link.send_command("release") == "OK: released"
    assert ser.writes == [b"status\n", b"release\n"]


def test_blank_lines_are_skipped(scripted_link):
    link, _ = scripted_link([(0, b"\r\n\n\r\nOK\r\n")])
    assert link.send_command("press 5") == "OK"


def test_hold_finishes_on_first_ok(scripted_link):
    link, _ = scripted_link([(0, b"OK: holding 1\r\n"), (0, b"OK\r\n")])
    assert link.send_command("hold 1") == "OK: holding 1"


def test_error_line_is_logged_not_enforced(scripted_link, caplog):
    link, _ = scripted_link([(0, b"ERR: jammed\r\n"), (0, b"OK\r\n")])
    with caplog.at_level(logging.WARNING, logger="microwave_link"):
        assert link.send_command("press 1") == "OK"
    assert "ERR: jammed" in caplog.text


def test_line_split_across_reads(scripted_link):
    link, _ = scripted_link([(0, b"OK: pre"), (0.01, b"ssing 2\r\nO"), (0.01, b"K\r\n")])
    assert link.send_command("press 2") == "OK"


def test_send_on_closed_link_is_bad_handle():
    link = SerialLink()
    with pytest.raises(BadHandleError) as excinfo:
        link.send_command("press stop")
    assert excinfo.value.status == Status.BAD_HANDLE


def test_write_failure_is_transport_error(clock):
    mock_ser = MagicMock()
    mock_ser.is_open = True
    mock_ser.write.side_effect = serial.SerialException("device unplugged")

    link = SerialLink(serial_factory=lambda **kw: mock_ser, clock=clock, sleep=clock.sleep)
    link.open("/dev/ttyACM0", drain=False)

    with pytest.raises(TransportError) as excinfo:
        link.send_command("press stop")
    assert excinfo.value.status == Status.SERIAL_FAIL


def test_read_failure_is_transport_error(scripted_link):
    link, ser = scripted_link()
    ser.read_error = OSError(5, "Input/output error")
    with pytest.raises(TransportError):
        link.send_command("status")


def test_unexpected_failure_is_unknown(scripted_link):
    link, ser = scripted_link()
    ser.read_error = ValueError("garbage")
    with pytest.raises(ControllerDriverError) as excinfo:
        link.send_command("status")
    assert not isinstance(excinfo.value, TransportError)
    assert excinfo.value.status == Status.UNKNOWN


def test_non_ascii_command_is_rejected_before_writing(scripted_link, clock):
    link, ser = scripted_link([(0, b"OK: holding\r\n")])

    with pytest.raises(ControllerDriverError) as excinfo:
        link.send_command("hold \u00e9")

    assert not isinstance(excinfo.value, TransportError)
    assert excinfo.value.status == Status.UNKNOWN
    assert ser.writes == []
    assert KEYPRESS_SETTLE_S not in clock.sleeps


def test_read_timeout_is_not_reset_on_every_poll(scripted_link, clock):
    link, ser = scripted_link([(1.0, b"Status: idle\r\n")])

    assert link.send_command("status", timeout_s=2.0) == "Status: idle"
    assert clock.now >= 101.0
    # One poll length for the whole wait, not one assignment per read
    assert ser.timeout_sets == 1
    assert ser.timeout == READ_POLL_S


def test_silent_port_times_out_with_few_timeout_changes(scripted_link, clock):
    link, ser = scripted_link()
    start = clock.now

    with pytest.raises(AckTimeoutError):
        link.send_command("status", timeout_s=2.0)

    assert clock.now - start == pytest.approx(2.0)
    assert ser.timeout_sets <= 3


def test_open_configures_8n1():
    factory = MagicMock()
    factory.return_value.is_open = True

    link = SerialLink(serial_factory=factory)
    link.open("/dev/ttyUSB0", 9600, drain=False)

    factory.assert_called_once_with(
        port="/dev/ttyUSB0",
        baudrate=9600,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        timeout=OPEN_READ_TIMEOUT_S,
    )
    assert link.is_open()
    assert link.port == "/dev/ttyUSB0"
    assert link.baudrate == 9600


def test_open_failure_raises_open_failure():
    factory = MagicMock(side_effect=serial.SerialException("could not open port"))
    link = SerialLink(serial_factory=factory)

    with pytest.raises(OpenFailureError) as excinfo:
        link.open("/dev/ttyNOPE")
    assert excinfo.value.status == Status.OPEN_FAIL
    assert link.is_open() is False


def test_close_swallows_port_errors():
    mock_ser = MagicMock()
    mock_ser.is_open = True
    mock_ser.close.side_effect = OSError("already gone")

    link = SerialLink(serial_factory=lambda **kw: mock_ser)
    link.open("/dev/ttyACM0", drain=False)
    link.close()

    assert link.ser is None
    assert link.is_open() is False


def test_normalize_port_name():
    assert normalize_port_name("COM3", platform="win32") == "\\\\.\\COM3"
    assert normalize_port_name("COM3", platform="linux") == "COM3"
    assert normalize_port_name("/dev/ttyUSB0", platform="win32") == "/dev/ttyUSB0"


def test_close_drops_port_on_any_close_error():
    mock_ser = MagicMock()
    mock_ser.is_open = True
    mock_ser.close.side_effect = ValueError("boom")

    link = SerialLink(serial_factory=lambda **kw: mock_ser)
    link.open("/dev/ttyACM0", drain=False)
    link.close()

    mock_ser.close.assert_called_once()
    assert link.ser is None
    assert link.is_open() is False
