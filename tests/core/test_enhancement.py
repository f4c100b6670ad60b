"""Tests for class enhancement and method interception.

Tests using the ``stage`` or ``enhancer`` fixtures run once per enhancement
strategy, against the same controller classes.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from stagehand import (
    BeanContainer,
    ControllerWrapper,
    EnhancementError,
    EnhancementStrategy,
    NavigationError,
    RuntimeAgentEnhancer,
    SubclassingEnhancer,
    View,
    agent_installed,
    controller,
    install_agent,
    uninstall_agent,
)
from stagehand.core.annotations import ShowView
from stagehand.core.enhancement import VIEW_FIELD_NAME, is_enhanced_class, original_class
from stagehand.core.introspection import find_annotation

from scanapp.controllers import DetailController, MainController, SidebarController


@controller(view_id="slottedView")
class SlottedController:
    __slots__ = ("count",)


@controller(view_id="viewSlotView")
class ViewSlotController:
    __slots__ = ("_view",)


@pytest.mark.unit
class TestInterceptionEquivalence:
    """Both strategies must intercept annotated methods identically."""

    def test_return_value_is_preserved(self, stage):
        """The original return value reaches the caller unchanged."""
        stage.show_main_view()
        controller = stage.container.get_bean(MainController)

        assert controller.open_details() == "Hello, details!"
        assert controller.calls == 1

    def test_exactly_one_navigation(self, stage):
        """A successful call performs exactly one navigation."""
        main_view = stage.show_main_view()
        window = main_view.window
        controller = stage.container.get_bean(MainController)

        controller.open_details()

        shows = stage.view_graph.events("show")
        assert len(shows) == 1
        assert shows[0].view_id == "detailView"
        detail_view = stage.container.get_bean("detailView")
        assert detail_view.window is window
        assert window.content is detail_view
        assert not main_view.is_showing

    def test_failure_skips_navigation(self, stage):
        """A failing body propagates and performs no navigation."""
        stage.show_main_view()
        controller = stage.container.get_bean(MainController)

        with pytest.raises(ValueError, match="boom"):
            controller.fail_before_navigation()

        assert stage.view_graph.history == []

    def test_new_window_navigation(self, stage):
        main_view = stage.show_main_view()
        controller = stage.container.get_bean(MainController)

        assert controller.open_details_in_new_window() == "new window"

        detail_view = stage.container.get_bean("detailView")
        assert len(stage.view_graph.events("show")) == 1
        assert detail_view.window is not None
        assert detail_view.window is not main_view.window
        assert main_view.is_showing

    def test_nested_view_navigation(self, stage):
        """Without a target view, nested views are attached to the current view."""
        stage.show_main_view()
        controller = stage.container.get_bean(MainController)

        assert controller.show_sidebar() == "sidebar"

        attaches = stage.view_graph.events("attach")
        assert [event.view_id for event in attaches] == ["sidebarView"]
        root = ControllerWrapper.get_view_from(controller).root
        child, spec = root.children[0]
        assert child is stage.container.get_bean("sidebarView")
        assert spec.attach_to_index == 0
        assert stage.view_graph.events("show") == []

    def test_unannotated_method_is_not_intercepted(self, stage):
        stage.show_main_view()
        controller = stage.container.get_bean(MainController)

        assert controller.plain() == "plain"
        assert stage.view_graph.history == []

    def test_navigation_back_and_forth(self, stage):
        main_view = stage.show_main_view()
        main = stage.container.get_bean(MainController)
        detail = stage.container.get_bean(DetailController)

        main.open_details()
        assert detail.back() == "back"

        assert [event.view_id for event in stage.view_graph.events("show")] == [
            "detailView",
            "mainView",
        ]
        assert main_view.is_showing

    def test_call_from_worker_thread(self, stage):
        """Navigation is marshalled onto the UI thread from any caller."""
        stage.show_main_view()
        controller = stage.container.get_bean(MainController)

        with ThreadPoolExecutor(max_workers=1) as executor:
            result = executor.submit(controller.open_details).result()

        assert result == "Hello, details!"
        assert len(stage.view_graph.events("show")) == 1

    def test_same_window_navigation_requires_window(self, stage):
        """Navigating from a view that is not displayed fails after the body ran."""
        controller = stage.container.get_bean(MainController)

        with pytest.raises(NavigationError):
            controller.open_details()
        assert controller.calls == 1
        assert stage.view_graph.history == []


@pytest.mark.unit
class TestEnhancedClasses:
    """Properties shared by the classes both strategies produce."""

    def test_controller_holds_its_view(self, stage):
        controller = stage.container.get_bean(MainController)
        view = ControllerWrapper.get_view_from(controller)

        assert isinstance(controller, MainController)
        assert isinstance(view, View)
        assert view.controller is controller
        assert view is stage.container.get_bean("mainView")
        assert controller.own_view is view

    def test_enhanced_class_declares_view_field(self, enhancer):
        enhanced = enhancer.enhance_class(DetailController)

        assert hasattr(enhanced, VIEW_FIELD_NAME)
        assert is_enhanced_class(enhanced)
        assert enhancer.is_enhanced(enhanced)
        assert original_class(enhanced) is DetailController

    def test_enhancement_is_cached(self, enhancer):
        assert enhancer.enhance_class(MainController) is enhancer.enhance_class(MainController)

    def test_metadata_survives_enhancement(self, enhancer):
        enhanced = enhancer.enhance_class(MainController)

        record = find_annotation(enhanced.open_details, ShowView)

        assert record == ShowView(view_id="detailView")

    def test_slotted_controller_is_rejected(self, enhancer, ui_thread):
        container = BeanContainer(enhancer, ui_thread=ui_thread)
        container.add_controller_bean_definition(SlottedController)

        with pytest.raises(EnhancementError, match="__slots__"):
            enhancer.enhance_class(SlottedController)
        with pytest.raises(EnhancementError, match="__slots__"):
            container.get_bean(SlottedController)

    def test_slot_for_view_is_accepted(self, enhancer, ui_thread):
        container = BeanContainer(enhancer, ui_thread=ui_thread)
        container.add_controller_bean_definition(ViewSlotController)

        instance = container.get_bean(ViewSlotController)

        assert isinstance(instance, ViewSlotController)
        assert ControllerWrapper.get_view_from(instance) is container.get_bean("viewSlotView")

    def test_wrapper_rejects_unenhanced_instance(self):
        class Plain:
            pass

        with pytest.raises(EnhancementError, match="Has the class been enhanced"):
            ControllerWrapper(Plain())


@pytest.mark.unit
class TestSubclassingEnhancer:
    def test_generates_named_subclass(self):
        enhanced = SubclassingEnhancer().enhance_class(MainController)

        assert enhanced is not MainController
        assert issubclass(enhanced, MainController)
        assert enhanced.__name__ == "MainController__Enhanced"
        assert original_class(enhanced) is MainController

    def test_enhancing_an_enhanced_class_returns_it(self):
        enhancer = SubclassingEnhancer()
        enhanced = enhancer.enhance_class(SidebarController)

        assert enhancer.enhance_class(enhanced) is enhanced

    def test_original_class_is_untouched(self):
        SubclassingEnhancer().enhance_class(MainController)

        assert not is_enhanced_class(MainController)
        assert "open_details" in vars(MainController)
        assert not getattr(MainController.open_details, "__stagehand_intercepted__", False)

    def test_agent_query_is_independent_of_strategy(self):
        enhancer = SubclassingEnhancer()
        assert not enhancer.agent_installed()

        enhancer.install_agent()

        assert enhancer.agent_installed()
        assert agent_installed()


@pytest.mark.unit
class TestRuntimeAgent:
    def test_enhance_requires_agent(self):
        with pytest.raises(EnhancementError, match="not installed"):
            RuntimeAgentEnhancer().enhance_class(MainController)

    def test_rewrites_existing_classes_in_place(self):
        install_agent()

        assert is_enhanced_class(MainController)
        assert getattr(MainController.open_details, "__stagehand_intercepted__", False)
        assert RuntimeAgentEnhancer().enhance_class(MainController) is MainController

    def test_rewrites_classes_defined_after_install(self):
        from stagehand import controller, show_view

        install_agent()

        @controller(view_id="lateView")
        class LateController:
            @show_view(view_id="mainView")
            def go(self):
                return 1

        assert getattr(LateController.go, "__stagehand_intercepted__", False)
        assert hasattr(LateController, VIEW_FIELD_NAME)

    def test_uninstall_restores_classes(self):
        original = vars(MainController)["open_details"]
        install_agent()

        uninstall_agent()

        assert vars(MainController)["open_details"] is original
        assert not is_enhanced_class(MainController)
        assert not hasattr(MainController, VIEW_FIELD_NAME)

    def test_subclassing_after_agent_does_not_double_intercept(self):
        """Methods the agent already rewrote are inherited, not wrapped again."""
        install_agent()
        enhanced = SubclassingEnhancer().enhance_class(MainController)

        assert "open_details" not in vars(enhanced)

    def test_undecorated_subclass_counts_once_rewritten(self):
        install_agent()

        class SpecialDetailController(DetailController):
            pass

        enhancer = RuntimeAgentEnhancer()
        assert enhancer.is_enhanced(DetailController)
        assert not enhancer.is_enhanced(SpecialDetailController)
        assert not is_enhanced_class(SpecialDetailController)

        enhancer.enhance_class(SpecialDetailController)

        assert enhancer.is_enhanced(SpecialDetailController)
        assert is_enhanced_class(SpecialDetailController)

    @pytest.mark.parametrize("strategy", [EnhancementStrategy.RUNTIME_INSTRUMENTATION_AGENT])
    def test_agent_strategy_produces_plain_class_instances(self, stage):
        controller = stage.container.get_bean(MainController)

        assert type(controller) is MainController
