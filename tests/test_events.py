"""Unit tests for hashdoc.engine.events — EventChannel."""

from hashdoc.engine.events import EventChannel


class TestEventChannel:
    def setup_method(self):
        self.channel = EventChannel()

    def test_emit_without_listeners(self):
        assert self.channel.emit("log", "nobody hears") == 0

    def test_on_receives_every_event(self):
        seen = []
        self.channel.on("log", seen.append)
        self.channel.emit("log", "a")
        self.channel.emit("log", "b")
        assert seen == ["a", "b"]

    def test_once_fires_a_single_time(self):
        seen = []
        self.channel.once("ready", lambda: seen.append("ready"))
        assert self.channel.emit("ready") == 1
        assert self.channel.emit("ready") == 0
        assert seen == ["ready"]

    def test_off_single_listener(self):
        seen = []
        listener = self.channel.on("log", seen.append)
        self.channel.on("log", lambda msg: None)
        self.channel.off("log", listener)
        self.channel.emit("log", "x")
        assert seen == []
        assert self.channel.listener_count("log") == 1

    def test_off_all_listeners(self):
        self.channel.on("log", lambda msg: None)
        self.channel.on("log", lambda msg: None)
        self.channel.off("log")
        assert self.channel.listener_count("log") == 0

    def test_failing_listener_does_not_block_others(self):
        seen = []

        def broken(msg):
            raise RuntimeError("boom")

        self.channel.on("log", broken)
        self.channel.on("log", seen.append)
        self.channel.emit("log", "still delivered")
        assert seen == ["still delivered"]

    def test_listener_added_during_emit_is_kept(self):
        seen = []

        def register(msg):
            self.channel.on("log", seen.append)

        self.channel.once("log", register)
        self.channel.emit("log", "first")
        self.channel.emit("log", "second")
        assert seen == ["second"]
