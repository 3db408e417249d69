# tests/video/test_display.py
"""
gblite.video.displayモジュールの単体テスト。
"""
import pytest

from gblite.video.display import HeadlessDisplay

class TestHeadlessDisplay:
    def test_open_and_draw(self):
        display = HeadlessDisplay()
        assert not display.is_open()
        display.open(2, 1)
        assert display.is_open()
        display.draw(b"\x01\x02\x03\x04\x05\x06")
        assert display.frames == [b"\x01\x02\x03\x04\x05\x06"]
        assert display.frames_drawn == 1

    # @intent:test_case サイズの合わないフレームはValueErrorになることを検証します。
    def test_draw_size_mismatch(self):
        display = HeadlessDisplay()
        display.open(2, 2)
        with pytest.raises(ValueError, match="Frame size mismatch"):
            display.draw(b"\x00")

    # @intent:test_case フレーム上限に達するとpoll_events()で閉じることを検証します。
    def test_frame_limit(self):
        display = HeadlessDisplay(frame_limit=2, keep_frames=False)
        display.open(1, 1)
        display.draw(b"\x00\x00\x00")
        display.poll_events()
        assert display.is_open()
        display.draw(b"\x00\x00\x00")
        display.poll_events()
        assert not display.is_open()
        assert display.frames == []
