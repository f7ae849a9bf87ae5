from utils.access import CurrentUser, can_delete, can_edit, has_role


def test_module_scoped_operator_edits_only_its_module() -> None:
    user = CurrentUser(id="u1", roles=[("operator", "water_treatment")])

    assert can_edit(user, "water_treatment")
    assert not can_edit(user, "equipment")
    assert not can_delete(user)


def test_global_operator_edits_every_module() -> None:
    user = CurrentUser(id="u1", roles=[("operator", None)])

    assert can_edit(user, "equipment")
    assert can_edit(user, "product_quality")


def test_supervisor_and_admin_edit_and_delete() -> None:
    for role in ("admin", "supervisor"):
        user = CurrentUser(id="u1", roles=[(role, None)])
        assert can_edit(user, "shutdown_startup")
        assert can_delete(user)


def test_viewer_is_read_only() -> None:
    user = CurrentUser(id="u1", roles=[("viewer", None)])

    assert not can_edit(user, "water_treatment")
    assert not can_delete(user)


def test_module_scoped_admin_is_not_global() -> None:
    user = CurrentUser(id="u1", roles=[("admin", "equipment")])

    assert has_role(user, "admin", "equipment")
    assert not has_role(user, "admin")
    assert not can_delete(user)
