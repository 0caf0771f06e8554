from rtmplive.stats import SAVE_STATICS_INTERVAL, BandwidthStats


def test_first_save_sets_timestamp_and_counts():
    st = BandwidthStats()
    st.save(1, 100, True, now_ms=10_000)
    st.save(1, 40, False, now_ms=10_001)
    assert st.last_timestamp == 10_000
    assert st.video_bytes == 100
    assert st.audio_bytes == 40
    assert st.stream_id == 1


def test_no_rate_before_interval():
    st = BandwidthStats()
    st.save(1, 500, True, now_ms=10_000)
    st.save(1, 500, True, now_ms=10_000 + SAVE_STATICS_INTERVAL - 1)
    assert st.video_speed == 0
    assert st.last_video_bytes == 0
    assert st.last_timestamp == 10_000


def test_rate_after_interval():
    st = BandwidthStats()
    st.save(3, 0, True, now_ms=10_000)
    st.save(3, 625_000, True, now_ms=10_000 + SAVE_STATICS_INTERVAL)
    assert st.video_speed == 1000
    assert st.audio_speed == 0
    assert st.last_video_bytes == 625_000
    assert st.last_timestamp == 10_000 + SAVE_STATICS_INTERVAL


def test_rate_uses_delta_since_last_refresh():
    st = BandwidthStats()
    st.save(1, 0, True, now_ms=10_000)
    st.save(1, 625_000, True, now_ms=15_000)
    first = st.video_speed
    st.save(1, 625_000, True, now_ms=20_000)
    assert st.video_speed == first
    assert st.video_bytes == 1_250_000
    assert st.last_video_bytes == 1_250_000


def test_stream_id_tracks_latest():
    st = BandwidthStats()
    st.save(1, 10, False, now_ms=1)
    st.save(2, 10, False, now_ms=2)
    assert st.stream_id == 2
    assert st.audio_bytes == 20