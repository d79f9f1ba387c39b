import asyncio

import pytest

from pawpaw.core.exceptions import InvalidArgumentError, InvalidOperationError, NotFoundError
from pawpaw.models.match import Match
from pawpaw.models.pet_profile import PetProfile
from pawpaw.models.swipe import Swipe
from pawpaw.services import matches as matches_service
from pawpaw.services import swipes as swipes_service


async def _likes(pet_id) -> int:
    pet = await PetProfile.get(pet_id)
    return pet.likes_count


async def test_like_increments_counter_once(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    rex = await make_pet(str(bob.id), "Rex")

    first = await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")
    second = await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")

    assert first.was_duplicate is False
    assert second.was_duplicate is True
    assert second.swipe is None
    assert await _likes(rex.id) == 1
    assert await Swipe.find(Swipe.swiper_id == str(alice.id)).count() == 1


async def test_pass_after_like_is_rejected_as_duplicate(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    rex = await make_pet(str(bob.id), "Rex")

    await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")
    result = await swipes_service.record_swipe(str(alice.id), str(rex.id), "pass")

    assert result.was_duplicate is True
    stored = await Swipe.find_one(Swipe.swiper_id == str(alice.id))
    assert stored.swipe_type == "like"


async def test_pass_does_not_count(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    rex = await make_pet(str(bob.id), "Rex")

    result = await swipes_service.record_swipe(str(alice.id), str(rex.id), "pass")

    assert result.match is None
    assert await _likes(rex.id) == 0


async def test_self_swipe_rejected(make_user, make_pet):
    alice, _ = await make_user("alice")
    luna = await make_pet(str(alice.id), "Luna")

    with pytest.raises(InvalidOperationError):
        await swipes_service.record_swipe(str(alice.id), str(luna.id), "like")
    assert await Swipe.count() == 0
    assert await _likes(luna.id) == 0


async def test_unknown_pet_and_bad_type(make_user):
    alice, _ = await make_user("alice")
    with pytest.raises(NotFoundError):
        await swipes_service.record_swipe(str(alice.id), "000000000000000000000000", "like")
    with pytest.raises(NotFoundError):
        await swipes_service.record_swipe(str(alice.id), "not-an-id", "like")
    with pytest.raises(InvalidArgumentError):
        await swipes_service.record_swipe(str(alice.id), "000000000000000000000000", "superlike")


async def test_mutual_like_creates_one_match(make_user, make_pet, registries, fake_socket):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    luna = await make_pet(str(alice.id), "Luna")
    rex = await make_pet(str(bob.id), "Rex")
    alice_sock, bob_sock = fake_socket(), fake_socket()
    await registries["matches"].register(str(alice.id), alice_sock)
    await registries["matches"].register(str(bob.id), bob_sock)

    first = await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")
    assert first.match is None
    assert await Match.count() == 0
    assert alice_sock.sent == [] and bob_sock.sent == []

    second = await swipes_service.record_swipe(str(bob.id), str(luna.id), "like")
    assert second.match_created is True
    assert await Match.count() == 1

    match = second.match
    assert {match.user1_id, match.user2_id} == {str(alice.id), str(bob.id)}
    assert {match.pet1_id, match.pet2_id} == {str(luna.id), str(rex.id)}

    # each side sees the other's pet
    assert len(alice_sock.sent) == 1 and len(bob_sock.sent) == 1
    assert alice_sock.sent[0]["type"] == "match"
    assert alice_sock.sent[0]["data"]["pet"]["name"] == "Rex"
    assert bob_sock.sent[0]["data"]["pet"]["name"] == "Luna"
    assert bob_sock.sent[0]["data"]["matchId"] == str(match.id)
    assert bob_sock.sent[0]["data"]["message"] == "Pawsome! It's a Match!"


async def test_repeat_like_after_match_returns_existing_match(make_user, make_pet, registries, fake_socket):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    luna = await make_pet(str(alice.id), "Luna")
    rex = await make_pet(str(bob.id), "Rex")
    await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")
    made = await swipes_service.record_swipe(str(bob.id), str(luna.id), "like")
    bob_sock = fake_socket()
    await registries["matches"].register(str(bob.id), bob_sock)

    again = await swipes_service.record_swipe(str(bob.id), str(luna.id), "like")

    assert again.was_duplicate is True
    assert again.match.id == made.match.id
    assert await Match.count() == 1
    assert await _likes(luna.id) == 1
    assert bob_sock.sent == []


async def test_like_without_own_pet_never_matches(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    rex = await make_pet(str(bob.id), "Rex")

    result = await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")

    assert result.match is None
    assert await _likes(rex.id) == 1
    assert await Match.count() == 0


async def test_concurrent_match_attempts_create_one_match(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    luna = await make_pet(str(alice.id), "Luna")
    rex = await make_pet(str(bob.id), "Rex")
    await Swipe(swiper_id=str(alice.id), swiped_pet_id=str(rex.id), swipe_type="like").insert()
    await Swipe(swiper_id=str(bob.id), swiped_pet_id=str(luna.id), swipe_type="like").insert()

    results = await asyncio.gather(
        matches_service.check_and_create_match(str(alice.id), str(luna.id), str(bob.id), str(rex.id)),
        matches_service.check_and_create_match(str(bob.id), str(rex.id), str(alice.id), str(luna.id)),
    )

    assert await Match.count() == 1
    assert sorted(r.created for r in results) == [False, True]
    assert results[0].match.id == results[1].match.id


async def test_missing_pet_skips_match(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    rex = await make_pet(str(bob.id), "Rex")
    await Swipe(swiper_id=str(bob.id), swiped_pet_id="000000000000000000000000", swipe_type="like").insert()

    outcome = await matches_service.check_and_create_match(
        str(alice.id), "000000000000000000000000", str(bob.id), str(rex.id)
    )

    assert outcome is None
    assert await Match.count() == 0


async def test_history_lists_own_swipes(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    rex = await make_pet(str(bob.id), "Rex")
    max_ = await make_pet(str(bob.id), "Max")
    await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")
    await swipes_service.record_swipe(str(alice.id), str(max_.id), "pass")

    history = await swipes_service.swipe_history(str(alice.id))

    assert {h["swipedPet"]["name"]: h["swipeType"] for h in history} == {"Rex": "like", "Max": "pass"}
    assert await swipes_service.swipe_history(str(bob.id)) == []


async def test_list_matches_views(make_user, make_pet):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    luna = await make_pet(str(alice.id), "Luna")
    rex = await make_pet(str(bob.id), "Rex")
    await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")
    await swipes_service.record_swipe(str(bob.id), str(luna.id), "like")

    for_alice = await matches_service.list_matches(str(alice.id))
    for_bob = await matches_service.list_matches(str(bob.id))

    assert for_alice[0]["myPet"]["name"] == "Luna"
    assert for_alice[0]["otherPet"]["name"] == "Rex"
    assert for_bob[0]["myPet"]["name"] == "Rex"
    assert for_bob[0]["otherUser"]["id"] == str(alice.id)


async def test_match_survives_audit_failure(make_user, make_pet, registries, fake_socket, monkeypatch):
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    luna = await make_pet(str(alice.id), "Luna")
    rex = await make_pet(str(bob.id), "Rex")
    alice_sock = fake_socket()
    await registries["matches"].register(str(alice.id), alice_sock)

    async def broken_audit(*args, **kwargs):
        raise RuntimeError("audit write failed")

    monkeypatch.setattr(matches_service, "log_event", broken_audit)
    await swipes_service.record_swipe(str(alice.id), str(rex.id), "like")
    result = await swipes_service.record_swipe(str(bob.id), str(luna.id), "like")

    assert result.match_created is True
    assert await Match.count() == 1
    assert alice_sock.sent[0]["data"]["matchId"] == str(result.match.id)
