from __future__ import annotations

from tweetcord.adapters.twitter_mapper import build_post


class DummyTweet:
    def __init__(self, tweet_id: int, text: "str | None", author_id: "int | None" = None) -> None:
        self.id = tweet_id
        self.text = text
        self.author_id = author_id


class DummyUser:
    def __init__(self, user_id: int, name: str, username: "str | None", avatar: "str | None" = None) -> None:
        self.id = user_id
        self.name = name
        self.username = username
        self.profile_image_url = avatar


class DummyMedia:
    def __init__(self, key: str, media_type: str, url: "str | None") -> None:
        self.media_key = key
        self.type = media_type
        self.url = url


class DummyResponse:
    def __init__(self, data=None, includes=None) -> None:
        self.data = data
        self.includes = includes if includes is not None else {}
        self.errors = []
        self.matching_rules = []


def test_build_post_maps_author_and_media() -> None:
    response = DummyResponse(
        data=DummyTweet(99, "new release!", author_id=7),
        includes={
            "users": [DummyUser(7, "Alice", "alice", "https://pbs.twimg.com/a.jpg")],
            "media": [DummyMedia("3_1", "photo", "https://pbs.twimg.com/p.jpg")],
        },
    )
    post = build_post(response)

    assert post.id == "99"
    assert post.text == "new release!"
    assert post.author.handle == "alice"
    assert post.author.name == "Alice"
    assert post.author.avatar_url == "https://pbs.twimg.com/a.jpg"
    assert post.first_image.url == "https://pbs.twimg.com/p.jpg"
    assert post.url == "https://twitter.com/alice/status/99"


def test_build_post_picks_author_by_id() -> None:
    response = DummyResponse(
        data=DummyTweet(1, "reply", author_id=2),
        includes={"users": [DummyUser(1, "Mentioned", "mentioned"), DummyUser(2, "Bob", "bob")]},
    )
    assert build_post(response).author.handle == "bob"


def test_build_post_falls_back_to_first_user() -> None:
    response = DummyResponse(
        data=DummyTweet(1, "hi", author_id=None),
        includes={"users": [DummyUser(5, "Carol", "carol")]},
    )
    assert build_post(response).author.handle == "carol"


def test_build_post_without_users_has_no_author() -> None:
    post = build_post(DummyResponse(data=DummyTweet(1, "hi", author_id=3)))
    assert post is not None
    assert not post.has_author
    assert post.url is None


def test_build_post_without_data_is_none() -> None:
    assert build_post(DummyResponse(data=None)) is None


def test_video_only_post_has_no_image() -> None:
    response = DummyResponse(
        data=DummyTweet(1, None, author_id=7),
        includes={"users": [DummyUser(7, "Alice", "alice")], "media": [DummyMedia("7_1", "video", None)]},
    )
    post = build_post(response)
    assert post.text == ""
    assert post.first_image is None
    assert len(post.media) == 1
