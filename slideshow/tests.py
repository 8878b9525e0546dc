import asyncio
import math
import random
from datetime import timedelta

from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from albums.models import Album
from photos.models import Photo
from .carousel import Carousel, ReactionTray
from .gestures import (
    IDENTITY, NO_TRANSITION, RESET_TRANSITION, GestureEngine, GestureState, Transform,
)
from .scheduling import LoopScheduler, ManualScheduler


class FakeViewport:
    def __init__(self, width=300, height=400):
        self.size = (width, height)

    def measure(self):
        return self.size


class RecordingLayer:
    def __init__(self):
        self.applied = []

    def apply(self, transform, transition):
        self.applied.append((transform, transition))

    @property
    def last(self):
        return self.applied[-1]


class GestureEngineTestBase(SimpleTestCase):
    def setUp(self):
        self.scheduler = ManualScheduler()
        self.viewport = FakeViewport(300, 400)
        self.layer = RecordingLayer()
        self.engine = GestureEngine(self.viewport, self.layer, self.scheduler, max_scale=3)
        self.scheduler.run_frame()

    def tearDown(self):
        self.engine.close()

    def start_pinch(self):
        # distance 50, midpoint (100, 100)
        self.engine.contact_begin(1, 75, 100)
        self.engine.contact_begin(2, 125, 100)

    def assertWithinBounds(self, transform, width=300, height=400, max_scale=3):
        self.assertGreaterEqual(transform.scale, 1)
        self.assertLessEqual(transform.scale, max_scale)
        self.assertLessEqual(abs(transform.translate_x), (transform.scale - 1) * width / 2 + 1e-9)
        self.assertLessEqual(abs(transform.translate_y), (transform.scale - 1) * height / 2 + 1e-9)


class PinchZoomTests(GestureEngineTestBase):
    def test_initial_redraw_applies_identity(self):
        self.assertEqual(self.layer.applied, [(IDENTITY.css(), RESET_TRANSITION)])
        self.assertEqual(self.engine.state, GestureState.IDLE)

    def test_single_contact_does_not_open_session(self):
        self.engine.contact_begin(1, 10, 10)
        self.engine.contact_move(1, 80, 90)

        self.assertIsNone(self.engine.session)
        self.assertFalse(self.engine.interacting)
        self.assertEqual(self.engine.transform, IDENTITY)

    def test_second_contact_opens_session(self):
        self.start_pinch()

        session = self.engine.session
        self.assertEqual(session.start_distance, 50)
        self.assertEqual((session.start_midpoint.x, session.start_midpoint.y), (100, 100))
        self.assertEqual((session.width, session.height), (300, 400))
        self.assertEqual(session.start_transform, IDENTITY)
        self.assertTrue(self.engine.interacting)
        self.assertEqual(self.engine.state, GestureState.ZOOMING)

    def test_pinch_scales_and_pans(self):
        self.start_pinch()
        self.engine.contact_move(1, 60, 105)
        self.engine.contact_move(2, 160, 105)

        self.assertEqual(self.engine.transform, Transform(scale=2.0, translate_x=10.0, translate_y=5.0))

        self.scheduler.run_frame()
        self.assertEqual(self.layer.last, ('translate3d(10.0px, 5.0px, 0) scale(2.0)', NO_TRANSITION))

    def test_scale_clamps_to_max_scale(self):
        self.start_pinch()
        self.engine.contact_move(1, 0, 100)
        self.engine.contact_move(2, 50000, 100)

        self.assertEqual(self.engine.transform.scale, 3.0)
        self.assertWithinBounds(self.engine.transform)

    def test_scale_never_drops_below_one(self):
        self.start_pinch()
        self.engine.contact_move(2, 80, 100)

        self.assertEqual(self.engine.transform.scale, 1.0)
        self.assertEqual(self.engine.transform.translate_x, 0)
        self.assertEqual(self.engine.transform.translate_y, 0)

    def test_translation_clamps_to_content_edge(self):
        self.start_pinch()
        # distance 100 (scale 2), midpoint far off to the bottom right
        self.engine.contact_move(1, 1050, 1100)
        self.engine.contact_move(2, 1150, 1100)

        self.assertEqual(self.engine.transform, Transform(scale=2.0, translate_x=150.0, translate_y=200.0))

    def test_zero_start_distance_is_floored(self):
        self.engine.contact_begin(1, 100, 100)
        self.engine.contact_begin(2, 100, 100)
        self.assertEqual(self.engine.session.start_distance, 1.0)

        self.engine.contact_move(2, 102, 100)
        self.assertTrue(math.isfinite(self.engine.transform.scale))
        self.assertEqual(self.engine.transform.scale, 2.0)

    def test_session_starts_from_current_transform(self):
        self.engine.wheel(-100, True)
        zoomed = self.engine.transform

        self.start_pinch()
        self.assertEqual(self.engine.session.start_transform, zoomed)

    def test_unknown_contact_move_is_ignored(self):
        self.start_pinch()
        self.engine.contact_move(99, 0, 0)

        self.assertNotIn(99, self.engine.contacts)
        self.assertEqual(self.engine.transform, IDENTITY)

    def test_unmeasured_viewport_ignores_contacts(self):
        self.viewport.size = None
        self.engine.contact_begin(1, 0, 0)
        self.engine.contact_begin(2, 10, 0)

        self.assertEqual(self.engine.contacts, {})
        self.assertIsNone(self.engine.session)

    def test_invariants_hold_for_random_moves(self):
        rng = random.Random(7)
        self.start_pinch()
        for _ in range(500):
            contact = rng.choice([1, 2])
            self.engine.contact_move(contact, rng.uniform(-2000, 2000), rng.uniform(-2000, 2000))
            self.assertWithinBounds(self.engine.transform)

    def test_max_scale_below_one_is_rejected(self):
        with self.assertRaises(ValueError):
            GestureEngine(self.viewport, self.layer, self.scheduler, max_scale=0.5)


class ReleaseTests(GestureEngineTestBase):
    def test_dropping_to_one_contact_resets(self):
        self.start_pinch()
        self.engine.contact_move(2, 175, 100)
        self.scheduler.run_frame()

        self.engine.contact_end(2)

        self.assertEqual(self.engine.transform, IDENTITY)
        self.assertIsNone(self.engine.session)
        self.assertFalse(self.engine.interacting)
        self.assertEqual(self.engine.state, GestureState.RESETTING)

        self.scheduler.run_frame()
        self.assertEqual(self.layer.last, (IDENTITY.css(), RESET_TRANSITION))

        self.scheduler.advance(0.25)
        self.assertEqual(self.engine.state, GestureState.IDLE)

    def test_cancel_behaves_like_end(self):
        self.start_pinch()
        self.engine.contact_move(2, 175, 100)
        self.engine.contact_cancel(1)

        self.assertEqual(self.engine.transform, IDENTITY)

    def test_ending_unknown_contact_is_harmless(self):
        self.engine.contact_end(42)
        self.assertEqual(self.engine.state, GestureState.IDLE)

    def test_third_contact_does_not_rebase_session(self):
        self.start_pinch()
        session = self.engine.session
        self.engine.contact_begin(3, 300, 300)
        self.assertIs(self.engine.session, session)

        self.engine.contact_move(2, 175, 100)
        self.assertEqual(self.engine.transform, IDENTITY)

        # Original pair splits while the third contact is down
        self.engine.contact_end(1)
        self.assertTrue(self.engine.interacting)
        self.engine.contact_move(3, 500, 500)
        self.assertEqual(self.engine.transform, IDENTITY)

        self.engine.contact_end(3)
        self.assertFalse(self.engine.interacting)
        self.assertIsNone(self.engine.session)

    def test_new_session_opens_on_next_second_contact(self):
        self.start_pinch()
        self.engine.contact_end(2)
        self.engine.contact_begin(3, 125, 100)

        self.assertEqual(self.engine.session.contacts, (1, 3))
        self.assertEqual(self.engine.state, GestureState.ZOOMING)


class FrameCoalescingTests(GestureEngineTestBase):
    def test_moves_between_frames_apply_once_with_latest_state(self):
        self.start_pinch()
        for x in range(130, 180, 5):
            self.engine.contact_move(2, x, 100)

        self.assertEqual(self.scheduler.pending_frames, 1)
        applied_before = len(self.layer.applied)

        self.scheduler.run_frame()

        self.assertEqual(len(self.layer.applied), applied_before + 1)
        self.assertEqual(self.layer.last[0], self.engine.transform.css())

    def test_viewports_do_not_share_state(self):
        other_layer = RecordingLayer()
        other = GestureEngine(FakeViewport(100, 100), other_layer, self.scheduler)
        self.start_pinch()
        self.engine.contact_move(2, 175, 100)

        self.assertEqual(other.transform, IDENTITY)
        self.assertEqual(other.contacts, {})
        other.close()


class WheelZoomTests(GestureEngineTestBase):
    def test_wheel_without_modifier_does_nothing(self):
        handled = self.engine.wheel(-300, False)

        self.assertFalse(handled)
        self.assertEqual(self.engine.transform, IDENTITY)
        self.assertEqual(self.scheduler.pending_timers, 0)
        self.assertEqual(self.engine.state, GestureState.IDLE)

    def test_wheel_zoom_is_exponential(self):
        self.engine.wheel(-100, True)
        self.assertAlmostEqual(self.engine.transform.scale, math.exp(0.5))

        self.engine.wheel(-100, True)
        self.assertAlmostEqual(self.engine.transform.scale, math.exp(1.0))
        self.assertTrue(self.engine.interacting)

    def test_wheel_zoom_clamps(self):
        self.engine.wheel(-10000, True)
        self.assertEqual(self.engine.transform.scale, 3.0)

        self.engine.wheel(10000, True)
        self.assertEqual(self.engine.transform, IDENTITY)

    def test_wheel_zoom_out_reclamps_translation(self):
        self.start_pinch()
        self.engine.contact_move(1, 1050, 1100)
        self.engine.contact_move(2, 1150, 1100)
        self.assertEqual(self.engine.transform.translate_x, 150.0)

        self.engine.wheel(200 * math.log(2) - 200 * math.log(1.5), True)

        self.assertAlmostEqual(self.engine.transform.scale, 1.5)
        self.assertAlmostEqual(self.engine.transform.translate_x, 75.0)
        self.assertAlmostEqual(self.engine.transform.translate_y, 100.0)

    def test_idle_timer_resets_after_last_wheel_event(self):
        self.engine.wheel(-100, True)
        self.scheduler.advance(0.1)
        self.engine.wheel(-100, True)
        self.scheduler.advance(0.1)

        self.assertEqual(self.engine.state, GestureState.ZOOMING)
        self.assertNotEqual(self.engine.transform, IDENTITY)
        self.assertEqual(self.scheduler.pending_timers, 1)

        self.scheduler.advance(0.1)
        self.assertEqual(self.engine.transform, IDENTITY)
        self.assertEqual(self.engine.state, GestureState.RESETTING)

    def test_reset_redraw_uses_eased_transition(self):
        self.engine.wheel(-100, True)
        self.scheduler.run_frame()
        self.assertEqual(self.layer.last[1], NO_TRANSITION)

        self.scheduler.advance(0.2)
        self.scheduler.run_frame()
        self.assertEqual(self.layer.last, (IDENTITY.css(), RESET_TRANSITION))


class TeardownTests(GestureEngineTestBase):
    def test_close_cancels_frame_and_timer(self):
        self.engine.wheel(-100, True)
        self.assertEqual(self.scheduler.pending_frames, 1)
        self.assertEqual(self.scheduler.pending_timers, 1)

        self.engine.close()
        applied = len(self.layer.applied)

        self.assertEqual(self.scheduler.pending_frames, 0)
        self.assertEqual(self.scheduler.pending_timers, 0)
        self.scheduler.advance(1)
        self.scheduler.run_frame()
        self.assertEqual(len(self.layer.applied), applied)

    def test_closed_engine_schedules_nothing(self):
        self.engine.close()
        self.engine.close()
        self.start_pinch()
        self.engine.contact_move(2, 175, 100)

        self.assertFalse(self.engine.wheel(-100, True))
        self.assertEqual(self.scheduler.pending_frames, 0)

    def test_context_manager_closes(self):
        with GestureEngine(self.viewport, RecordingLayer(), self.scheduler) as engine:
            engine.wheel(-50, True)
        self.scheduler.advance(1)
        self.assertNotEqual(engine.transform, IDENTITY)


class LoopSchedulerTests(SimpleTestCase):
    def test_wheel_zoom_settles_back_on_an_asyncio_loop(self):
        layer = RecordingLayer()

        async def scenario():
            engine = GestureEngine(FakeViewport(), layer, LoopScheduler())
            engine.wheel(-100, True)
            await asyncio.sleep(0.3)
            engine.close()
            return engine

        engine = asyncio.run(scenario())

        self.assertEqual(engine.transform, IDENTITY)
        self.assertEqual(layer.applied[-1], (IDENTITY.css(), RESET_TRANSITION))
        self.assertIn(NO_TRANSITION, [transition for _, transition in layer.applied])


class CarouselTests(SimpleTestCase):
    def test_wraps_in_both_directions(self):
        carousel = Carousel(3)
        self.assertEqual(carousel.previous(), 2)
        self.assertEqual(carousel.next(), 0)
        carousel.go_to(2)
        self.assertEqual(carousel.next(), 0)

    def test_go_to_clamps(self):
        carousel = Carousel(4, index=10)
        self.assertEqual(carousel.index, 3)
        self.assertEqual(carousel.go_to(-5), 0)

    def test_swipe_threshold(self):
        carousel = Carousel(5, index=2)
        self.assertEqual(carousel.swipe(200, 160), 2)
        self.assertEqual(carousel.swipe(200, 100), 3)
        self.assertEqual(carousel.swipe(100, 200), 2)

    def test_empty_carousel(self):
        carousel = Carousel(0)
        self.assertEqual(carousel.next(), 0)
        self.assertEqual(carousel.previous(), 0)
        self.assertEqual(carousel.position, 0)
        self.assertFalse(carousel.show_dots)

    def test_dots_only_for_small_albums(self):
        self.assertFalse(Carousel(1).show_dots)
        self.assertTrue(Carousel(10).show_dots)
        self.assertFalse(Carousel(11).show_dots)


class ReactionTrayTests(SimpleTestCase):
    def test_hearts_expire_after_two_seconds(self):
        scheduler = ManualScheduler()
        tray = ReactionTray(scheduler, rng=random.Random(3))

        first = tray.react()
        scheduler.advance(1.0)
        second = tray.react()

        self.assertEqual([h.id for h in tray.hearts], [0, 1])
        for heart in tray.hearts:
            self.assertGreaterEqual(heart.left, 10)
            self.assertLess(heart.left, 70)

        scheduler.advance(1.0)
        self.assertEqual(tray.hearts, [second])
        scheduler.advance(1.0)
        self.assertEqual(tray.hearts, [])
        self.assertNotEqual(first.id, second.id)

    def test_close_cancels_pending_removals(self):
        scheduler = ManualScheduler()
        tray = ReactionTray(scheduler)
        tray.react()
        tray.close()

        self.assertEqual(scheduler.pending_timers, 0)


@override_settings(PHOTODISPLAY_MAX_SCALE=4.0)
class SlideshowViewTests(TestCase):
    def setUp(self):
        self.album = Album.objects.create(name='Wedding')
        self.album.activate()
        base = timezone.now()
        self.photos = []
        for i in range(3):
            photo = Photo.objects.create(album=self.album, filename=f"p{i}.jpg", path=f"/api/uploads/p{i}.jpg")
            Photo.objects.filter(pk=photo.pk).update(created_at=base + timedelta(minutes=i))
            self.photos.append(photo)

    def test_empty_state_without_active_album(self):
        Album.objects.update(is_active=False)
        response = self.client.get(reverse('slideshow:index'))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'No photos yet')
        self.assertIsNone(response.context['current_photo'])

    def test_shows_newest_photo_first(self):
        response = self.client.get(reverse('slideshow:index'))

        self.assertEqual(response.context['position'], 1)
        self.assertEqual(response.context['total'], 3)
        self.assertEqual(response.context['current_photo'], self.photos[-1])
        self.assertEqual(response.context['previous_position'], 3)
        self.assertEqual(response.context['next_position'], 2)
        self.assertEqual(response.context['max_scale'], 4.0)
        self.assertContains(response, '1 / 3')

    def test_page_renders_only_link_controls(self):
        response = self.client.get(reverse('slideshow:index'))

        self.assertContains(response, 'data-max-scale="4.0"')
        self.assertContains(response, 'href="?photo=3"')
        self.assertNotContains(response, '<button')

    def test_photo_parameter_selects_and_clamps(self):
        response = self.client.get(reverse('slideshow:index'), {'photo': 3})
        self.assertEqual(response.context['next_position'], 1)

        response = self.client.get(reverse('slideshow:index'), {'photo': 'abc'})
        self.assertEqual(response.context['position'], 1)

        response = self.client.get(reverse('slideshow:index'), {'photo': 99})
        self.assertEqual(response.context['position'], 3)
