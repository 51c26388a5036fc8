# s3stress

Building blocks for benchmarking object storage: generators of synthetic
object payloads, a thread-safe record of timed operations, and the analysis
that turns those records into throughput, latency and time-to-first-byte
figures.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Generating object data

`s3stress.sources` produces objects with random names and a payload of a
requested size. Two kinds of payload exist:

- random data (`with_random_data()`): a seed block of random bytes, repeated
  and passed through AES in counter mode, so the stream keeps changing as it is
  read (`RandomSource`);
- CSV text (`with_csv()`): rows of random ASCII fields, regenerated for every
  object (`CsvSource`).

Sources are configured with option functions from `s3stress.options` and the
`apply()` method of `CsvOpts` / `RandomOpts`, then created with `new(...)`:

```python
from s3stress.options import with_size, with_prefix_size
from s3stress.sources import new, with_csv

source = new(with_size(1 << 20), with_prefix_size(8), with_csv().size(10, 500).apply())
obj = source.object()
data = obj.reader.read()   # exactly obj.size bytes
obj.reader.seek(0)         # rewind, e.g. to retry an upload
print(source)              # "CSV data. 10 columns, 500 rows."
print(source.prefix())     # random prefix every object name is placed under
```

`CsvOpts` also has `comma`, `field_len` and `rng_seed`; `RandomOpts` has
`size` (block size) and `rng_seed`. Each returns an updated copy.

An object's reader (`s3stress.buffers.CircularBuffer` or
`s3stress.buffers.Scrambler`) serves the requested number of bytes and then
returns `b""`. `seek` accepts the usual `whence` values; seeking past the end
raises `EOFError`. Requesting a new object from a source reuses its reader, so
only the latest object's reader should be read.

`new_fn(...)` validates the options once and returns a factory that builds a
fresh source per call, convenient for one source per worker thread.

Other options in `s3stress.options`: `with_min_max_size`, `with_random_size`
(exponentially distributed sizes, see `get_exp_rand_size`) and
`with_custom_prefix`. Invalid settings raise `ValueError` when the source is
created. `Objects.prefixes()` and `merge_object_prefixes` list the distinct
prefixes of generated objects.

## Recording and analysing operations

`s3stress.operation.Operation` records a single request: its type, start,
first byte, end, size, thread, client, endpoint and error. It reports its
`duration()`, `ttfb()` and `bytes_per_sec()` (a `Throughput`, which prints
with binary units such as `12.3MiB/s`).

`s3stress.collector.Collector` gathers operations from many threads with
`add` and hands them over with `close`. `auto_term(...)` starts a background
thread that checks once a second whether throughput over the last segments has
stayed within a threshold; when it has, it prints a message and sets the
`threading.Event` it returned, which workers can watch to stop.

`s3stress.operations.Operations` is the list type the analysis works on. It
offers sorting (`sort_by_start_time`, `sort_by_duration`, `sort_by_ttfb`,
...), filtering (`filter_by_op`, `filter_successful`, `filter_inside_range`,
`filter_first`, ...), grouping (`by_op`, `by_endpoint`), statistics
(`avg_duration`, `std_dev`, `median`, `ttfb`, `op_throughput`,
`active_time_range`) and time segmentation (`segment`, `total`). Segmentation
yields `s3stress.segment.Segments`, which can be sorted, queried for medians
and written as text (`print_to`) or tab-separated CSV (`write_csv`).

Recorded runs are saved and loaded with `s3stress.opcsv.write_csv` and
`s3stress.opcsv.operations_from_csv`. Operations of mixed sizes can be grouped
by order of magnitude with `s3stress.sizes.split_sizes` and
`single_size_segment`.

## Comparing two runs

`s3stress.compare.compare(before, after, analysis, all_threads)` checks that
two runs cover the same operation type and contain no errors (raising
`ValueError` otherwise), splits both into segments of the given analysis
duration, and returns a `Comparison` with the differences in average, median,
fastest and slowest throughput (`CmpSegment`), request latency (`CmpReqs`)
and time to first byte (`TTFBCmp`, or `None` when there is none).

## Small helpers

`s3stress.textutil` holds formatting helpers: `zfill`, `decimal_round`,
`fixate_bar_caption` and `get_fixed_width`.

## What this package does not do

It does not talk to any storage server: there is no client, no upload,
download, listing or delete logic, and no benchmark runner that drives
workers. There is no command-line tool and no progress bar display. Callers
time their own requests, record them as `Operation`s and use this package to
generate payloads and analyse the results.