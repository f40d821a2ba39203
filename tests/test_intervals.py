import unittest

import evoloop.intervals


MAJOR = [0, 2, 4, 5, 7, 9, 11]


class IntervalTests (unittest.TestCase):

	"""
	Tests for the scale registry and scale-degree arithmetic.
	"""

	def test_get_intervals (self) -> None:

		"""
		Interval lookup should return a known definition.
		"""

		self.assertEqual(evoloop.intervals.get_intervals("major"), MAJOR)


	def test_get_intervals_returns_a_copy (self) -> None:

		"""
		Editing a returned scale must not change the registry.
		"""

		scale = evoloop.intervals.get_intervals("dorian")
		scale.append(1)

		self.assertEqual(evoloop.intervals.get_intervals("dorian"), [0, 2, 3, 5, 7, 9, 10])


	def test_unknown_scale_raises (self) -> None:

		with self.assertRaises(ValueError):
			evoloop.intervals.get_intervals("not_a_scale")


	def test_register_scale_normalises (self) -> None:

		"""
		Registered scales are sorted and deduplicated.
		"""

		evoloop.intervals.register_scale("test_custom", [7, 0, 3, 3])

		self.assertEqual(evoloop.intervals.get_intervals("test_custom"), [0, 3, 7])


	def test_normalize_scale_by_name_and_list (self) -> None:

		self.assertEqual(evoloop.intervals.normalize_scale("minor_pentatonic"), [0, 3, 5, 7, 10])
		self.assertEqual(evoloop.intervals.normalize_scale([11, 0, 4, 4]), [0, 4, 11])


	def test_normalize_scale_rejects_bad_input (self) -> None:

		"""
		Empty, missing, out-of-range and non-integer scales are all rejected.
		"""

		for bad in ([], None, [12], [-1], [1.5], [True]):
			with self.subTest(scale=bad):
				with self.assertRaises(ValueError):
					evoloop.intervals.normalize_scale(bad)


	def test_in_scale (self) -> None:

		self.assertTrue(evoloop.intervals.in_scale(62, MAJOR, 60))
		self.assertTrue(evoloop.intervals.in_scale(50, MAJOR, 60))
		self.assertFalse(evoloop.intervals.in_scale(61, MAJOR, 60))


	def test_degree_step_within_octave (self) -> None:

		"""
		Two degrees up from E4 in C major is G4.
		"""

		self.assertEqual(evoloop.intervals.degree_step(64, 2, MAJOR, 60), 67)


	def test_degree_step_crosses_octaves (self) -> None:

		self.assertEqual(evoloop.intervals.degree_step(71, 1, MAJOR, 60), 72)
		self.assertEqual(evoloop.intervals.degree_step(60, -1, MAJOR, 60), 59)
		self.assertEqual(evoloop.intervals.degree_step(48, 1, MAJOR, 60), 50)
		self.assertEqual(evoloop.intervals.degree_step(60, 7, MAJOR, 60), 72)


	def test_degree_step_snaps_out_of_scale_pitches (self) -> None:

		"""
		C#4 is equidistant from C4 and D4 and snaps down before moving.
		"""

		self.assertEqual(evoloop.intervals.degree_step(61, 0, MAJOR, 60), 60)
		self.assertEqual(evoloop.intervals.degree_step(61, 1, MAJOR, 60), 62)


	def test_nearest_degree (self) -> None:

		self.assertEqual(evoloop.intervals.nearest_degree(60, MAJOR, 60), (0, 0))
		self.assertEqual(evoloop.intervals.nearest_degree(71, MAJOR, 60), (0, 6))
		self.assertEqual(evoloop.intervals.nearest_degree(59, MAJOR, 60), (-1, 6))


	def test_note_name (self) -> None:

		self.assertEqual(evoloop.intervals.note_name(60), "C4")
		self.assertEqual(evoloop.intervals.note_name(69), "A4")
		self.assertEqual(evoloop.intervals.note_name(37), "C#2")
