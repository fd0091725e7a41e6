# concurlab

`concurlab` has two parts.

The first is a small caching HTTP proxy. When several clients ask for the same
URL at the same time, they share one upstream download. The response is
split into chunks, and each chunk goes to every subscribed client. A
response that ends with a 2xx status is saved as a cache file. Later requests
for the same method and URL are served from that file.

The second part is a set of concurrency experiments:

- Bounded FIFO queues of integers, each guarded in its own way: no lock, a spin lock, a
  mutex, a condition variable or two semaphores. Every queue counts its add
  and get attempts and its successful adds and gets.
- A stress test on a linked list that has one lock per node. Reader threads
  compare the lengths of neighbouring strings while swapper threads reorder
  the nodes.
- A hand-made spin lock, a mutex that tracks its owner, and a benchmark in
  which many threads increment a shared counter through one of them.
- A cooperative scheduler for user-level threads that switch at `yield`.

It needs Python 3.10 or later and uses only the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Commands

| Command | Options | What it does |
| --- | --- | --- |
| `concurlab-proxy` | `--port` (default 8080), `--parallel` | Starts the caching proxy. With `--parallel`, clients and subscriber sends are served on a pool of worker threads. |
| `concurlab-queue-bench` | `--queue {condvar,mutex,semaphore,spinlock,unsafe}`, `--capacity`, `--duration`, `--monitor`, `--demo` | Runs a reader thread and a writer thread against one queue and reports every value that arrives out of order. At the end it prints the user and system CPU time. With `--demo` it adds ten values, then tries twelve gets, printing the stats after each step. |
| `concurlab-liststress` | `--lock {spinlock,mutex,rwlock}`, `--duration`, `--size`, `--seed` | Runs the linked-list stress test, prints the counters once a second, then prints the final statistics. |
| `concurlab-counter-bench` | `--threads`, `--increments` | Increments a shared counter from many threads, first under `SpinLock` and then under `OwnedMutex`, and prints each final value. |
| `concurlab-uthreads` | `--tasks` | Runs many cooperative threads that each yield once, then prints the final count. |

Some defaults are large. `concurlab-queue-bench` runs for 20000 seconds and
uses a capacity of 1,000,000, or 1000 with `--demo`. `concurlab-counter-bench`
starts 20 threads of 1,000,000 increments each.

To send a request through the proxy, point an HTTP client at it:

```
curl -x http://localhost:8080 http://example.com/
```

The proxy keeps its cache files in `../cache`, relative to the working
directory. It creates that directory the first time it saves a response.

## Using the library

### Queues

```python
from concurlab.queues import MutexQueue

q = MutexQueue(1000)
try:
    for i in range(10):
        q.add(i)
    print(len(q))            # 10
    print(q.get())           # 0
    print(q.format_stats())
finally:
    q.close()
```

`UnsafeQueue`, `SpinlockQueue`, `MutexQueue`, `CondvarQueue` and
`SemaphoreQueue` all share the `BaseQueue` interface.

- The non-blocking queues return `False` from `add` when they are full and
  `None` from `get` when they are empty.
- `CondvarQueue` and `SemaphoreQueue` wait in `add` and `get` instead. They
  raise `QueueClosedError` once the queue is closed.
- `stats` returns a `QueueStats` snapshot.
- Passing `monitor_interval` starts a thread that prints the stats line
  periodically.

Any of these queues can be passed to
`concurlab.queue_bench.run_queue_benchmark`, which returns a `BenchResult`.

### Locks

```python
from concurlab.locks import SpinLock, OwnedMutex
from concurlab.counter_bench import run_counter_benchmark

print(run_counter_benchmark(SpinLock(), 4, 10_000))   # 40000
with OwnedMutex():
    pass
```

Only the thread that acquired an `OwnedMutex` can release it. Any other thread
that tries gets a `RuntimeError`.

### Linked-list stress test

`concurlab.liststress.run(lock_kind, duration, size, seed)` builds a list with
`build_list`. It runs the `asc_routine`, `desc_routine`, `eq_routine` and
`print_routine` threads, plus three `swap_routine` threads, and returns the
final `StressStats`.

### Cooperative threads

```python
from concurlab.uthreads import UThreadScheduler

scheduler = UThreadScheduler()
scheduler.add(print, "hello")
scheduler.run()
```

A plain function runs to completion in one step. A generator function gives up
control at each `yield`. After `run` has finished, `reset` allows it to run
again.

### Proxy building blocks

- `concurlab.http_utils.parse_http_request` parses a raw request into an
  `HttpRequest`.
- `concurlab.cache.cachename_for` names a request's cache file from its method,
  its host and a hash of its URL.
- `CacheStore` reads, writes and checks for those files.
- `SubscriptionManager` fans chunks out to its subscribed sockets.
- `concurlab.server.start_server` runs the accept loop for a `ProxyContext`.

## What the proxy does not do

- It does not tunnel `CONNECT` requests, so HTTPS through the proxy does not
  work. It only fetches absolute `http://` and `https://` URLs.
- It reads one block of at most 4095 bytes per client as the whole request.
  It forwards at most ten request headers.
- Upstream it sends `POST`, `PUT` and `DELETE` as themselves. Every other
  method is sent as `GET`.
- It never expires or revalidates a cache file. A cached response is replayed
  as stored until the file is removed.
- It does not handle authentication, keep-alive connections to the client or
  any access control. The one exception is a single hard-coded blocked URL.

## What the experiments do not do

The experiments only count and print. They do not plot or save their results.
`concurlab-liststress` builds a new, random list on every run, seeded by
`--seed` when one is given.