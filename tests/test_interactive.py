"""Testes para o modo interativo (máquina de estados de menus)."""

from unittest import mock

import pytest

from clean_discord import interactive
from clean_discord.archive import list_channels
from clean_discord.config import CleanDiscordConfig
from clean_discord.interactive import InteractiveSession, MenuState
from fakes import FakeDiscordClient


def prompt(answer):
    """Simula o objeto devolvido por questionary.select/confirm/... ."""
    question = mock.Mock()
    question.ask_async = mock.AsyncMock(return_value=answer)
    return question


@pytest.fixture
def q(mocker):
    """Substitui o questionary usado pelo módulo interativo."""
    mocker.patch("clean_discord.interactive.console")
    return mocker.patch("clean_discord.interactive.questionary")


@pytest.fixture
def config():
    return CleanDiscordConfig(pacing_ms=0, default_dry_run=True)


@pytest.fixture
def session(data_dump, config, ledger):
    channels = list_channels(data_dump)
    return InteractiveSession(
        data_dump=data_dump,
        config=config,
        ledger=ledger,
        client=None,
        channels=channels,
        channel=channels[0],
    )


class TestShowChannelList:
    """Testes para show_channel_list()."""

    @pytest.mark.asyncio
    async def test_exit(self, q, session):
        q.select.return_value = prompt("exit")
        assert await interactive.show_channel_list(session) is MenuState.EXIT

    @pytest.mark.asyncio
    async def test_cancel_is_exit(self, q, session):
        """Ctrl+C no questionary devolve None."""
        q.select.return_value = prompt(None)
        assert await interactive.show_channel_list(session) is MenuState.EXIT

    @pytest.mark.asyncio
    async def test_select_channel(self, q, session):
        chosen = session.channels[1]
        q.select.return_value = prompt(chosen)

        assert await interactive.show_channel_list(session) is MenuState.MESSAGE_LIST
        assert session.channel == chosen

    @pytest.mark.asyncio
    async def test_lists_every_channel_plus_menu_entries(self, q, session):
        q.select.return_value = prompt("exit")
        await interactive.show_channel_list(session)

        choices = q.select.call_args.kwargs["choices"]
        # 3 canais + separador + configurações + sair
        assert len(choices) == 6
        assert q.Separator.call_count == 1

    @pytest.mark.asyncio
    async def test_settings(self, q, session, mocker):
        settings = mocker.patch("clean_discord.interactive.interactive_settings", new=mock.AsyncMock())
        q.select.return_value = prompt("settings")

        assert await interactive.show_channel_list(session) is MenuState.CHANNEL_LIST
        settings.assert_awaited_once_with(session.config)


class TestShowMessageList:
    """Testes para show_message_list()."""

    @pytest.mark.asyncio
    async def test_all_pending_skips_already_deleted(self, q, session, ledger):
        ledger.record_deletion("111", "1001")
        q.select.return_value = prompt("all")

        assert await interactive.show_message_list(session) is MenuState.CONFIRM
        assert session.selected_ids == ["1002", "1003"]

    @pytest.mark.asyncio
    async def test_pick_messages(self, q, session):
        q.select.return_value = prompt("pick")
        q.checkbox.return_value = prompt(["1003"])

        assert await interactive.show_message_list(session) is MenuState.CONFIRM
        assert session.selected_ids == ["1003"]

    @pytest.mark.asyncio
    async def test_pick_nothing(self, q, session, mocker):
        warn = mocker.patch("clean_discord.interactive.print_warning")
        q.select.return_value = prompt("pick")
        q.checkbox.return_value = prompt([])

        assert await interactive.show_message_list(session) is MenuState.CHANNEL_LIST
        warn.assert_called_once()

    @pytest.mark.asyncio
    async def test_back(self, q, session):
        q.select.return_value = prompt("back")
        assert await interactive.show_message_list(session) is MenuState.CHANNEL_LIST

    @pytest.mark.asyncio
    async def test_everything_already_deleted(self, q, session, ledger, mocker):
        mocker.patch("clean_discord.interactive.print_info")
        for mid in ("1001", "1002", "1003"):
            ledger.record_deletion("111", mid)

        assert await interactive.show_message_list(session) is MenuState.CHANNEL_LIST
        q.select.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreadable_channel(self, q, session, tmp_path, mocker):
        """Canal sem export volta para a lista com erro."""
        err = mocker.patch("clean_discord.interactive.print_error")
        empty = tmp_path / "c999"
        empty.mkdir()
        session.channel = session.channel.__class__(directory=empty, channel_id="999", name="x")

        assert await interactive.show_message_list(session) is MenuState.CHANNEL_LIST
        err.assert_called_once()


class TestShowConfirm:
    """Testes para show_confirm()."""

    @pytest.mark.asyncio
    async def test_without_client_forces_dry_run(self, q, session, mocker):
        mocker.patch("clean_discord.interactive.print_warning")
        session.selected_ids = ["1001"]

        assert await interactive.show_confirm(session) is MenuState.RUN
        assert session.dry_run is True
        q.confirm.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_channel_returns_to_list(self, q, session):
        session.channel = None
        assert await interactive.show_confirm(session) is MenuState.CHANNEL_LIST
        q.confirm.assert_not_called()

    @pytest.mark.asyncio
    async def test_dry_run_only_ignores_client(self, q, session, mocker):
        """Sessão aberta com --dry-run não pergunta nada, mesmo com cliente."""
        mocker.patch("clean_discord.interactive.print_info")
        session.client = FakeDiscordClient()
        session.dry_run_only = True
        session.config.default_dry_run = False

        assert await interactive.show_confirm(session) is MenuState.RUN
        assert session.dry_run is True
        q.confirm.assert_not_called()

    @pytest.mark.asyncio
    async def test_real_run_confirmed(self, q, session):
        session.client = FakeDiscordClient()
        q.confirm.side_effect = [prompt(False), prompt(True)]

        assert await interactive.show_confirm(session) is MenuState.RUN
        assert session.dry_run is False

    @pytest.mark.asyncio
    async def test_real_run_refused(self, q, session):
        session.client = FakeDiscordClient()
        q.confirm.side_effect = [prompt(False), prompt(False)]

        assert await interactive.show_confirm(session) is MenuState.CHANNEL_LIST

    @pytest.mark.asyncio
    async def test_dry_run_needs_no_second_confirmation(self, q, session):
        session.client = FakeDiscordClient()
        q.confirm.side_effect = [prompt(True)]

        assert await interactive.show_confirm(session) is MenuState.RUN
        assert q.confirm.call_count == 1


class TestRunSelection:
    """Testes para run_selection()."""

    @pytest.mark.asyncio
    async def test_deletes_and_records(self, q, session, ledger):
        client = FakeDiscordClient()
        session.client = client
        session.dry_run = False
        session.selected_ids = ["1001", "1002"]
        q.confirm.return_value = prompt(False)
        q.press_any_key_to_continue.return_value = prompt(None)

        assert await interactive.run_selection(session) is MenuState.CHANNEL_LIST
        assert client.calls == [("111", "1001"), ("111", "1002")]
        assert ledger.deleted_message_ids("111") == {"1001", "1002"}
        assert session.summaries[0].succeeded == {"1001", "1002"}

    @pytest.mark.asyncio
    async def test_dry_run_touches_nothing(self, q, session, ledger):
        session.selected_ids = ["1001"]
        q.confirm.return_value = prompt(False)
        q.press_any_key_to_continue.return_value = prompt(None)

        await interactive.run_selection(session)

        assert ledger.count() == 0
        assert session.summaries[0].simulated == ["1001"]

    @pytest.mark.asyncio
    async def test_generates_report(self, q, session, tmp_path, mocker):
        session.config.default_report_dir = str(tmp_path / "rel")
        session.config.default_report_format = "txt"
        session.selected_ids = ["1001"]
        mocker.patch("clean_discord.interactive.print_success")
        q.confirm.return_value = prompt(True)
        q.press_any_key_to_continue.return_value = prompt(None)

        await interactive.run_selection(session)

        assert len(list((tmp_path / "rel").glob("run_*.txt"))) == 1


class TestInteractiveMain:
    """Testes de fluxo completo do interactive_main()."""

    @pytest.mark.asyncio
    async def test_full_flow(self, q, data_dump, config, ledger):
        client = FakeDiscordClient()
        channel = list_channels(data_dump)[0]
        q.select.side_effect = [prompt(channel), prompt("all"), prompt("exit")]
        # dry-run? não / confirma? sim / relatório? não
        q.confirm.side_effect = [prompt(False), prompt(True), prompt(False)]
        q.press_any_key_to_continue.return_value = prompt(None)

        summaries = await interactive.interactive_main(data_dump, config, ledger, client)

        assert len(summaries) == 1
        assert summaries[0].succeeded == {"1001", "1002", "1003"}
        assert ledger.count("111") == 3

    @pytest.mark.asyncio
    async def test_dry_run_session_never_deletes(self, q, data_dump, ledger, mocker):
        """interactive_main(dry_run=True) só simula, mesmo com cliente e padrão desligado."""
        mocker.patch("clean_discord.interactive.print_info")
        client = FakeDiscordClient()
        config = CleanDiscordConfig(pacing_ms=0, default_dry_run=False)
        channel = list_channels(data_dump)[0]
        q.select.side_effect = [prompt(channel), prompt("all"), prompt("exit")]
        # apenas: relatório? não
        q.confirm.side_effect = [prompt(False)]
        q.press_any_key_to_continue.return_value = prompt(None)

        summaries = await interactive.interactive_main(data_dump, config, ledger, client, dry_run=True)

        assert client.calls == []
        assert summaries[0].simulated == ["1001", "1002", "1003"]
        assert ledger.count() == 0

    @pytest.mark.asyncio
    async def test_empty_data_dump(self, q, tmp_path, config, ledger, mocker):
        warn = mocker.patch("clean_discord.interactive.print_warning")
        (tmp_path / "messages").mkdir()
        (tmp_path / "messages" / "index.json").write_text("{}", encoding="utf-8")

        assert await interactive.interactive_main(tmp_path, config, ledger, None) == []
        warn.assert_called_once()
        q.select.assert_not_called()


class TestInteractiveSettings:
    """Testes para interactive_settings()."""

    @pytest.mark.asyncio
    async def test_change_pacing(self, q, mocker):
        save = mocker.patch("clean_discord.interactive.save_config")
        mocker.patch("clean_discord.interactive.print_success")
        cfg = CleanDiscordConfig()
        q.select.return_value = prompt("pacing")
        q.text.return_value = prompt(" 1000 ")

        await interactive.interactive_settings(cfg)

        assert cfg.pacing_ms == 1000
        save.assert_called_once_with(cfg)

    @pytest.mark.asyncio
    async def test_toggle_dry_run(self, q, mocker):
        mocker.patch("clean_discord.interactive.save_config")
        mocker.patch("clean_discord.interactive.print_success")
        cfg = CleanDiscordConfig(default_dry_run=True)
        q.select.return_value = prompt("dry_run")
        q.confirm.return_value = prompt(False)

        await interactive.interactive_settings(cfg)

        assert cfg.default_dry_run is False

    @pytest.mark.asyncio
    async def test_cancel_dry_run_prompt_keeps_value(self, q, mocker):
        """Ctrl+C na pergunta de dry-run não altera nem salva a config."""
        save = mocker.patch("clean_discord.interactive.save_config")
        cfg = CleanDiscordConfig(default_dry_run=True)
        q.select.return_value = prompt("dry_run")
        q.confirm.return_value = prompt(None)

        await interactive.interactive_settings(cfg)

        assert cfg.default_dry_run is True
        save.assert_not_called()

    @pytest.mark.asyncio
    async def test_back_saves_nothing(self, q, mocker):
        save = mocker.patch("clean_discord.interactive.save_config")
        q.select.return_value = prompt(None)

        await interactive.interactive_settings(CleanDiscordConfig())

        save.assert_not_called()


class TestAskDataDump:
    """Testes para ask_data_dump()."""

    @pytest.mark.asyncio
    async def test_strips_answer(self, q):
        q.path.return_value = prompt("  /tmp/package  ")
        assert await interactive.ask_data_dump() == "/tmp/package"

    @pytest.mark.asyncio
    async def test_cancelled(self, q):
        q.path.return_value = prompt(None)
        assert await interactive.ask_data_dump() is None

    @pytest.mark.asyncio
    async def test_rejects_empty_path(self, q):
        q.path.return_value = prompt(None)
        await interactive.ask_data_dump()

        validate = q.path.call_args.kwargs["validate"]
        assert validate("   ") == "O caminho não pode ser vazio!"
        assert validate("/tmp") is True
