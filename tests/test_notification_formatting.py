from __future__ import annotations

from tweetcord.adapters.notification_formatting import build_embed, build_embeds
from tweetcord.core.models import Card, CardAuthor, NotificationPayload


def test_build_embed_with_author_and_image() -> None:
    card = Card(
        title="New Tweet",
        url="https://twitter.com/alice/status/1",
        description="hello",
        image_url="https://pbs.twimg.com/p.jpg",
        author=CardAuthor(name="Alice (alice)", icon_url="https://pbs.twimg.com/a.jpg", url="https://twitter.com/alice"),
        color=0x1DA1F2,
    )
    embed = build_embed(card)

    assert embed.title == "New Tweet"
    assert embed.url == "https://twitter.com/alice/status/1"
    assert embed.description == "hello"
    assert embed.author.name == "Alice (alice)"
    assert embed.author.icon_url == "https://pbs.twimg.com/a.jpg"
    assert embed.author.url == "https://twitter.com/alice"
    assert embed.image.url == "https://pbs.twimg.com/p.jpg"
    assert embed.color.value == 0x1DA1F2


def test_banner_card_is_image_only() -> None:
    embed = build_embed(Card(image_url="https://example.com/banner.png", color=0x010203))
    assert embed.title is None
    assert embed.author.name is None
    assert embed.image.url == "https://example.com/banner.png"


def test_build_embeds_keeps_card_order() -> None:
    payload = NotificationPayload(cards=(Card(title="first"), Card(title="second")))
    assert [embed.title for embed in build_embeds(payload)] == ["first", "second"]
