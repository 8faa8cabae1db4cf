import contextlib
import io
import os
import tempfile
import unittest
from unittest import mock

from solarshare import cli
from solarshare.errors import TransportError
from solarshare.presence.models import ParticipantView
from solarshare.transfer.models import UploadReceipt


class CliTest(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.id_file = os.path.join(self.tmp.name, "participant_id")
        with open(self.id_file, "w") as f:
            f.write("3")
        patcher = mock.patch.object(cli, "SolarShareClient")
        self.client_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = self.client_cls.return_value

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = cli.main(["--id-file", self.id_file, *argv])
        return code, out.getvalue(), err.getvalue()

    def test_peers(self):
        self.client.list_participants.return_value = [
            ParticipantView(id=9, user_name="Ann", ip_address="10.0.0.9", connected_at=0),
        ]

        code, out, _ = self.run_cli("peers")

        self.assertEqual(code, 0)
        self.assertIn("Ann", out)
        self.client.close.assert_called_once()

    def test_peers_server_down(self):
        self.client.list_participants.side_effect = TransportError("Could not reach server")

        code, _, err = self.run_cli("peers")

        self.assertEqual(code, 1)
        self.assertIn("Could not reach server", err)

    def test_clear(self):
        self.client.clear.return_value = 2
        code, out, _ = self.run_cli("clear")
        self.assertEqual(code, 0)
        self.assertIn("Cleared 2", out)

    def test_send(self):
        path = os.path.join(self.tmp.name, "report.txt")
        with open(path, "wb") as f:
            f.write(b"data")
        self.client.list_participants.return_value = [
            ParticipantView(id=9, user_name="Ann", ip_address="10.0.0.9", connected_at=0),
        ]
        self.client.upload.return_value = UploadReceipt(
            message="ok", file_path="/x", file_name="report.txt", file_size=4, timestamp="t"
        )

        code, out, _ = self.run_cli("send", "9", path)

        self.assertEqual(code, 0)
        self.assertIn("to Ann (ID: 9)", out)
        sent_file, target_id, sender_id = self.client.upload.call_args[0]
        self.assertEqual((sent_file.name, sent_file.data, target_id, sender_id),
                         ("report.txt", b"data", 9, 3))

    def test_send_reports_failure(self):
        path = os.path.join(self.tmp.name, "report.txt")
        with open(path, "wb") as f:
            f.write(b"data")
        self.client.list_participants.return_value = []
        self.client.upload.side_effect = TransportError("Failed to upload file")

        code, out, err = self.run_cli("send", "9", path)

        self.assertEqual(code, 1)
        self.assertIn("failed", out)
        self.assertIn("not online", err)

    def test_send_missing_file(self):
        code, _, err = self.run_cli("send", "9", os.path.join(self.tmp.name, "nope"))
        self.assertEqual(code, 1)
        self.assertIn("Error", err)


if __name__ == "__main__":
    unittest.main()
