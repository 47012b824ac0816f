import logging
from typing import List, Tuple

LOG_LEVEL_IO = 5
logging.addLevelName(LOG_LEVEL_IO, "IO")


def align_sequences(expected: str, actual: str) -> Tuple[str, str, str]:
  """Needleman-Wunsch alignment of an expected and an actual write.

  Prints the two aligned frames with a marker line underneath pointing at every difference, which
  makes it easy to spot a changed argument in a long Focus command.

  Returns:
    The aligned expected string, the aligned actual string and the marker line.
  """

  m, n = len(expected), len(actual)
  cost: List[List[int]] = [[0] * (n + 1) for _ in range(m + 1)]
  for i in range(m + 1):
    cost[i][0] = i
  for j in range(n + 1):
    cost[0][j] = j

  for i in range(1, m + 1):
    for j in range(1, n + 1):
      substitution = 0 if expected[i - 1] == actual[j - 1] else 1
      cost[i][j] = min(
        cost[i - 1][j - 1] + substitution,
        cost[i - 1][j] + 1,  # gap in actual
        cost[i][j - 1] + 1,  # gap in expected
      )

  # walk back from the bottom right corner
  i, j = m, n
  aligned_expected: List[str] = []
  aligned_actual: List[str] = []
  markers: List[str] = []
  while i > 0 or j > 0:
    if i > 0 and j > 0:
      same = expected[i - 1] == actual[j - 1]
      if cost[i][j] == cost[i - 1][j - 1] + (0 if same else 1):
        aligned_expected.append(expected[i - 1])
        aligned_actual.append(actual[j - 1])
        markers.append(" " if same else "^")
        i -= 1
        j -= 1
        continue
    if i > 0 and cost[i][j] == cost[i - 1][j] + 1:
      aligned_expected.append(expected[i - 1])
      aligned_actual.append("-")
      i -= 1
    else:
      aligned_expected.append("-")
      aligned_actual.append(actual[j - 1])
      j -= 1
    markers.append("^")

  result = (
    "".join(reversed(aligned_expected)),
    "".join(reversed(aligned_actual)),
    "".join(reversed(markers)),
  )
  print("expected:", repr(result[0]))
  print("actual:  ", repr(result[1]))
  print("          ", result[2])
  return result
