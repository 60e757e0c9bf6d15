"""Split a unified diff into file units and pack them into bounded chunks.

Unlike the overlapping character windows used for prose, diff chunks
follow file boundaries: whole file patches are packed greedily up to the
size limit, and only a single file patch larger than the limit is cut
into fixed-size slices. Slicing loses the file boundary at each cut.
"""

# Standard Library
import re


FILE_BOUNDARY_RE = re.compile(r"^diff --git.*$", re.MULTILINE)
UNIT_SEPARATOR = "\n\n"


#============================================
def split_patch_by_file(patch: str) -> list[str]:
	"""
	Split a patch on 'diff --git' header lines into per-file units.

	The header lines themselves are dropped; each unit is stripped and
	empty units are discarded.

	Args:
		patch: unified diff text.

	Returns:
		List of per-file patch strings, in patch order.
	"""
	if not patch:
		return []
	units = []
	for part in FILE_BOUNDARY_RE.split(patch):
		text = part.strip()
		if text:
			units.append(text)
	return units


#============================================
def slice_text(text: str, limit: int) -> list[str]:
	"""
	Cut text into consecutive slices of at most limit characters.
	"""
	slices = []
	for start in range(0, len(text), limit):
		slices.append(text[start:start + limit])
	return slices


#============================================
def pack_chunks(parts: list[str], limit: int) -> list[str]:
	"""
	Greedily pack file units into chunks of at most limit characters.

	Args:
		parts: per-file patch units in order.
		limit: maximum characters per chunk.

	Returns:
		List of chunk strings in emission order.
	"""
	if limit < 1:
		raise ValueError(f"limit must be a positive integer; got {limit}")
	chunks = []
	buffer = ""
	for part in parts:
		if buffer:
			candidate = buffer + UNIT_SEPARATOR + part
		else:
			candidate = part
		if len(candidate) <= limit:
			buffer = candidate
			continue
		if buffer:
			chunks.append(buffer)
		if len(part) > limit:
			chunks.extend(slice_text(part, limit))
			buffer = ""
		else:
			buffer = part
	if buffer:
		chunks.append(buffer)
	return chunks


#============================================
def chunk_patch(patch: str, limit: int) -> list[str]:
	"""
	Split a patch by file and pack it into bounded chunks.
	"""
	return pack_chunks(split_patch_by_file(patch), limit)
