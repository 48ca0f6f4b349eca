"""Tests for PyUsbTransport with pyusb calls patched out."""

from unittest.mock import MagicMock, patch

import pytest
import usb.core

from fusion_kbd.constants import FUSION_PID, FUSION_VID, NO_TIMEOUT
from fusion_kbd.errors import DeviceNotFound, UsbBackendMissing
from fusion_kbd.transport import PyUsbTransport, UsbTransport


@pytest.fixture
def usb_dev():
    dev = MagicMock()
    dev.is_kernel_driver_active.return_value = True
    dev.ctrl_transfer.return_value = 8
    dev.write.return_value = 64
    dev.read.return_value = [1] * 64
    with patch("usb.core.find", return_value=dev) as find:
        dev.find = find
        yield dev


class TestPyUsbTransportOpen:

    def test_is_usb_transport(self):
        assert issubclass(PyUsbTransport, UsbTransport)

    def test_open_finds_fusion_ids(self, usb_dev):
        t = PyUsbTransport()
        t.open()
        usb_dev.find.assert_called_once_with(idVendor=FUSION_VID, idProduct=FUSION_PID)
        assert t.is_open
        assert t.device is usb_dev

    @patch("usb.core.find", return_value=None)
    def test_not_found(self, _find):
        t = PyUsbTransport()
        with pytest.raises(DeviceNotFound, match="0x1044"):
            t.open()
        assert not t.is_open

    @patch("usb.core.find", side_effect=usb.core.NoBackendError("No backend available"))
    def test_missing_libusb_backend(self, _find):
        t = PyUsbTransport()
        with pytest.raises(UsbBackendMissing, match="libusb"):
            t.open()
        assert not t.is_open

    @patch("usb.util.dispose_resources")
    def test_close_disposes(self, dispose, usb_dev):
        t = PyUsbTransport()
        t.open()
        t.close()
        dispose.assert_called_once_with(usb_dev)
        assert not t.is_open

    def test_context_manager(self, usb_dev):
        with patch("usb.util.dispose_resources") as dispose:
            with PyUsbTransport() as t:
                assert t.is_open
        dispose.assert_called_once()


class TestPyUsbTransportPrimitives:

    def test_kernel_driver(self, usb_dev):
        t = PyUsbTransport()
        t.open()
        assert t.kernel_driver_active(3) is True
        t.detach_kernel_driver(3)
        t.attach_kernel_driver(3)
        usb_dev.is_kernel_driver_active.assert_called_once_with(3)
        usb_dev.detach_kernel_driver.assert_called_once_with(3)
        usb_dev.attach_kernel_driver.assert_called_once_with(3)

    def test_claim_release(self, usb_dev):
        t = PyUsbTransport()
        t.open()
        with patch("usb.util.claim_interface") as claim, \
                patch("usb.util.release_interface") as release:
            t.claim_interface(0)
            t.release_interface(0)
        claim.assert_called_once_with(usb_dev, 0)
        release.assert_called_once_with(usb_dev, 0)

    def test_ctrl_transfer(self, usb_dev):
        t = PyUsbTransport()
        t.open()
        assert t.ctrl_transfer(0x21, 0x09, 0x0300, 0x0003, b'\x00' * 8) == 8
        usb_dev.ctrl_transfer.assert_called_once_with(
            0x21, 0x09, 0x0300, 0x0003, b'\x00' * 8, timeout=NO_TIMEOUT,
        )

    def test_interrupt_write(self, usb_dev):
        t = PyUsbTransport()
        t.open()
        assert t.write_interrupt(0x06, bytes(64)) == 64
        usb_dev.write.assert_called_once_with(0x06, bytes(64), timeout=NO_TIMEOUT)

    def test_interrupt_read_returns_bytes(self, usb_dev):
        t = PyUsbTransport()
        t.open()
        data = t.read_interrupt(0x86, 64)
        assert data == bytes([1] * 64)
        usb_dev.read.assert_called_once_with(0x86, 64, timeout=NO_TIMEOUT)

    def test_not_open(self):
        t = PyUsbTransport()
        with pytest.raises(RuntimeError, match="not open"):
            t.write_interrupt(0x06, bytes(64))
