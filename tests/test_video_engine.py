import asyncio
import unittest

from app import FletVideoEngine


class FakeVideo:
    def __init__(self):
        self.calls = []

    async def play(self):
        self.calls.append("play")

    async def pause(self):
        self.calls.append("pause")

    async def seek(self, ms):
        self.calls.append(("seek", ms))

    async def get_current_position(self):
        return 1500


class FakePage:
    def __init__(self):
        self.tasks = []

    def run_task(self, handler, *args):
        task = asyncio.get_running_loop().create_task(handler(*args))
        self.tasks.append(task)
        return task


class TestFletVideoEngine(unittest.TestCase):
    def test_pause_then_play_leaves_one_poll_loop(self):
        async def scenario():
            page = FakePage()
            engine = FletVideoEngine(page, None, interval_ms=20)
            engine.video = FakeVideo()
            reports = []
            engine.on_progress = reports.append

            await engine.play()
            await engine.pause()
            await engine.play()
            await asyncio.sleep(0.07)
            running = [not t.done() for t in page.tasks]

            await engine.pause()
            await asyncio.sleep(0.05)
            finished = all(t.done() for t in page.tasks)
            return running, finished, reports

        running, finished, reports = asyncio.run(scenario())
        self.assertEqual(running, [False, True])
        self.assertTrue(finished)
        self.assertTrue(reports)
        self.assertLessEqual(len(reports), 4)
        self.assertTrue(all(r == 1.5 for r in reports))

    def test_seek_uses_milliseconds(self):
        engine = FletVideoEngine(FakePage(), None)
        engine.video = FakeVideo()
        asyncio.run(engine.seek(2.5))
        self.assertEqual(engine.video.calls, [("seek", 2500)])


if __name__ == "__main__":
    unittest.main()
