import dataclasses
import typing

import barbeat.constants
import barbeat.constants.velocity


@dataclasses.dataclass
class NoteEvent:

	"""
	A single timed note, the unit exchanged with the host environment.

	``start_time`` and ``duration`` are clip-relative host beats (quarter
	notes). ``velocity_deviation`` is the spread the host adds to
	``velocity`` at playback; the randomisation itself happens there.
	"""

	pitch: int
	start_time: float
	duration: float
	velocity: float = barbeat.constants.velocity.DEFAULT_VELOCITY
	probability: float = barbeat.constants.DEFAULT_PROBABILITY
	velocity_deviation: float = 0.0

	@property
	def end_time (self) -> float:
		return self.start_time + self.duration

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Return the note as a plain dict using host-style keys."""

		return dataclasses.asdict(self)

	@staticmethod
	def from_dict (data: typing.Mapping[str, typing.Any]) -> "NoteEvent":

		"""
		Build a note from a host-style dict.

		``probability`` and ``velocity_deviation`` are optional; missing values
		take their defaults.
		"""

		return NoteEvent(
			pitch = int(data["pitch"]),
			start_time = float(data["start_time"]),
			duration = float(data["duration"]),
			velocity = float(data.get("velocity", barbeat.constants.velocity.DEFAULT_VELOCITY)),
			probability = float(data.get("probability", barbeat.constants.DEFAULT_PROBABILITY)),
			velocity_deviation = float(data.get("velocity_deviation", 0.0))
		)
