import asyncio
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from solarshare.client import SolarShareClient
from solarshare.config import COLOR_PALETTE, ORBITAL_CONFIG
from solarshare.discovery.identity import load_or_assign_participant_id
from solarshare.discovery.loop import DiscoveryLoop, build_display_list
from solarshare.errors import TransportError
from solarshare.presence.models import ParticipantView


def view(user_id, name=None):
    return ParticipantView(
        id=user_id,
        user_name=name if name is not None else f"User {user_id}",
        ip_address="10.0.0.1",
        connected_at=0,
    )


class FakeServer:
    """Stands in for SolarShareClient."""

    def __init__(self, participants=None) -> None:
        self.participants = participants or []
        self.heartbeats = []
        self.fail = False

    def heartbeat(self, user_id, user_name, ip_address=None):
        if self.fail:
            raise TransportError("Could not reach server")
        self.heartbeats.append((user_id, user_name, ip_address))

    def list_participants(self):
        if self.fail:
            raise TransportError("Could not reach server")
        return list(self.participants)


class DisplayListTest(unittest.TestCase):

    def test_parameters_follow_position(self):
        display = build_display_list([view(4), view(9), view(20)])

        for index, entry in enumerate(display):
            distance, size, speed = ORBITAL_CONFIG[index]
            self.assertEqual((entry.distance, entry.size, entry.speed), (distance, size, speed))
            self.assertEqual(entry.color, COLOR_PALETTE[index])
        self.assertEqual([e.id for e in display], [4, 9, 20])

    def test_palette_wraps(self):
        display = build_display_list([view(i) for i in range(1, 13)])

        self.assertEqual(display[10].color, display[0].color)
        self.assertEqual(display[11].distance, display[1].distance)

    def test_visuals_shift_when_someone_leaves(self):
        before = build_display_list([view(1), view(2), view(3)])
        after = build_display_list([view(2), view(3)])

        self.assertEqual(before[1].id, 2)
        self.assertEqual(after[0].id, 2)
        self.assertEqual(after[0].color, before[0].color)

    def test_blank_name_falls_back(self):
        display = build_display_list([view(5, name="")])
        self.assertEqual(display[0].name, "User 5")


class DiscoveryLoopTest(unittest.IsolatedAsyncioTestCase):

    async def test_tick_heartbeats_then_refreshes(self):
        server = FakeServer([view(3), view(7)])
        loop = DiscoveryLoop(server, 7, "Ann", ip_address="10.0.0.7")

        self.assertTrue(await loop.tick())

        self.assertEqual(server.heartbeats, [(7, "Ann", "10.0.0.7")])
        self.assertEqual([p.id for p in loop.participants], [3, 7])
        self.assertEqual([p.id for p in loop.others], [3])
        self.assertIsNone(loop.error)

    async def test_default_name(self):
        loop = DiscoveryLoop(FakeServer(), 42)
        self.assertEqual(loop.display_name, "User 42")

    async def test_failed_refresh_keeps_previous_list(self):
        server = FakeServer([view(3), view(7)])
        loop = DiscoveryLoop(server, 7)
        await loop.tick()

        server.fail = True
        self.assertFalse(await loop.tick())
        self.assertEqual(loop.error, "Could not reach server")
        self.assertEqual([p.id for p in loop.participants], [3, 7])

        server.fail = False
        server.participants = [view(7)]
        self.assertTrue(await loop.tick())
        self.assertIsNone(loop.error)
        self.assertEqual([p.id for p in loop.participants], [7])

    async def test_update_callbacks(self):
        server = FakeServer([view(1)])
        loop = DiscoveryLoop(server, 1)
        updates = []

        async def record(participants):
            updates.append([p.id for p in participants])

        loop.on_update(record)
        await loop.tick()
        self.assertEqual(updates, [[1]])

    async def test_start_announces_and_keeps_running(self):
        server = FakeServer([view(1)])
        loop = DiscoveryLoop(server, 1, interval=0.01)

        await loop.start()
        try:
            self.assertEqual(len(server.heartbeats), 1)
            self.assertTrue(loop.running)
            await asyncio.sleep(0.1)
            self.assertGreater(len(server.heartbeats), 2)
        finally:
            await loop.stop()
        self.assertFalse(loop.running)

    async def test_loop_survives_errors(self):
        server = FakeServer([view(1)])
        server.fail = True
        loop = DiscoveryLoop(server, 1, interval=0.01)

        await loop.start()
        try:
            self.assertEqual(loop.error, "Could not reach server")
            server.fail = False
            await asyncio.sleep(0.1)
            self.assertTrue(loop.running)
            self.assertIsNone(loop.error)
            self.assertEqual([p.id for p in loop.participants], [1])
        finally:
            await loop.stop()

    async def test_loop_survives_malformed_server_reply(self):
        response = mock.Mock()
        response.status_code = 200
        response.ok = True
        response.json.side_effect = ValueError("not json")
        session = mock.Mock(spec=requests.Session)
        session.request.return_value = response
        loop = DiscoveryLoop(SolarShareClient("http://server:8765", session=session), 1, interval=0.01)

        await loop.start()
        try:
            await asyncio.sleep(0.05)
            self.assertTrue(loop.running)
            self.assertIn("Malformed response", loop.error)
            self.assertEqual(loop.participants, [])
        finally:
            await loop.stop()


class IdentityTest(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "nested" / "participant_id"

    def tearDown(self):
        self.tmp.cleanup()

    def test_assigns_and_remembers(self):
        first = load_or_assign_participant_id(self.path, (1, 100))

        self.assertTrue(1 <= first <= 100)
        self.assertEqual(self.path.read_text(), str(first))
        self.assertEqual(load_or_assign_participant_id(self.path, (1, 100)), first)

    def test_reads_existing_id(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("57\n")
        self.assertEqual(load_or_assign_participant_id(self.path), 57)

    def test_replaces_garbage(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("not a number")

        participant_id = load_or_assign_participant_id(self.path, (5, 5))

        self.assertEqual(participant_id, 5)
        self.assertEqual(self.path.read_text(), "5")


if __name__ == "__main__":
    unittest.main()
