from clip_enrichment.utils.paths import artifact_stem, sanitize_filename


def test_artifact_stem_separates_ids_that_sanitize_alike():
    assert sanitize_filename("clip.1") == sanitize_filename("clip1")
    assert artifact_stem("clip.1") != artifact_stem("clip1")


def test_artifact_stem_keeps_suffix_of_long_names():
    long_id = "a" * 64
    stems = {artifact_stem(f"{long_id}_{platform}_optimized") for platform in ("tiktok", "instagram", "youtube")}

    assert len(stems) == 3
    assert any(stem.startswith("a") and "_youtube_optimized-" in stem for stem in stems)
    assert all(len(stem) <= 48 + 11 for stem in stems)


def test_artifact_stem_is_stable():
    assert artifact_stem("c1") == artifact_stem("c1")
    assert artifact_stem("").startswith("clip-")
