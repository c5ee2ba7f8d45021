import threading
from datetime import datetime, timezone

from django.test import SimpleTestCase

from waitstaff_app.exceptions import NotFound, ValidationError
from waitstaff_app.models import LineItem, OrderStatus
from waitstaff_app.store import InMemoryOrderStore

SOUP = [{"dish_id": "soup", "quantity": 2}]


class InMemoryOrderStoreTests(SimpleTestCase):
    def setUp(self):
        self.store = InMemoryOrderStore()

    # ------------------------
    # create
    # ------------------------
    def test_create_assigns_increasing_ids_and_open_status(self):
        first = self.store.create(4, SOUP)
        second = self.store.create(5, [LineItem("salad", 1)])

        self.assertLess(first.id, second.id)
        self.assertEqual(first.status, OrderStatus.OPEN)
        self.assertEqual(first.table_number, 4)
        self.assertEqual(first.items, (LineItem("soup", 2),))
        self.assertIsNotNone(first.created_at)
        self.assertEqual(first.created_at, first.updated_at)

    def test_create_keeps_line_item_order_and_duplicates(self):
        items = [
            {"dish_id": "bread", "quantity": 1},
            {"dish_id": "soup", "quantity": 2},
            {"dish_id": "bread", "quantity": 3},
        ]
        order = self.store.create(1, items)
        self.assertEqual([i.dish_id for i in order.items], ["bread", "soup", "bread"])
        self.assertEqual([i.quantity for i in order.items], [1, 2, 3])

    def test_create_rejects_bad_input(self):
        bad_inputs = [
            (4, []),
            (4, [{"dish_id": "soup", "quantity": 0}]),
            (4, [{"dish_id": "soup", "quantity": -1}]),
            (4, [{"dish_id": "soup", "quantity": True}]),
            (4, [{"dish_id": "", "quantity": 1}]),
            (4, [{"quantity": 1}]),
            (4, ["soup"]),
            (4, None),
            (0, SOUP),
            (-3, SOUP),
            ("4", SOUP),
        ]
        for table_number, items in bad_inputs:
            with self.subTest(table_number=table_number, items=items):
                with self.assertRaises(ValidationError):
                    self.store.create(table_number, items)
        self.assertEqual(len(self.store), 0)

    def test_create_assigns_cooking_time_in_minutes(self):
        for _ in range(50):
            order = self.store.create(4, SOUP)
            self.assertGreaterEqual(order.cooking_time, 5)
            self.assertLessEqual(order.cooking_time, 15)
        self.assertEqual(self.store.get(order.id).cooking_time, order.cooking_time)

    def test_cooking_time_source_is_injectable(self):
        store = InMemoryOrderStore(cooking_time=lambda: 12)
        self.assertEqual(store.create(1, SOUP).cooking_time, 12)

    def test_timestamps_never_go_backwards(self):
        ticks = iter([
            datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
            datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc),
            datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
        ])
        store = InMemoryOrderStore(now=lambda: next(ticks))

        first = store.create(1, SOUP)
        second = store.create(2, SOUP)
        deleted = store.delete(first.id)

        self.assertGreaterEqual(second.created_at, first.created_at)
        self.assertGreaterEqual(deleted.updated_at, second.created_at)

    def test_returned_orders_are_copies(self):
        order = self.store.create(4, SOUP)
        order.status = OrderStatus.DELETED
        order.table_number = 99

        stored = self.store.get(order.id)
        self.assertEqual(stored.status, OrderStatus.OPEN)
        self.assertEqual(stored.table_number, 4)

    # ------------------------
    # list / get
    # ------------------------
    def test_list_is_ascending_and_excludes_deleted(self):
        ids = [self.store.create(t, SOUP).id for t in (3, 1, 2)]
        self.store.delete(ids[1])

        listed = self.store.list()
        self.assertEqual([o.id for o in listed], [ids[0], ids[2]])

    def test_list_filters_by_table_and_dish(self):
        a = self.store.create(3, [{"dish_id": "soup", "quantity": 1}])
        b = self.store.create(3, [{"dish_id": "steak", "quantity": 1}])
        c = self.store.create(7, [{"dish_id": "soup", "quantity": 1}, {"dish_id": "tea", "quantity": 2}])

        self.assertEqual([o.id for o in self.store.list(table_number=3)], [a.id, b.id])
        self.assertEqual([o.id for o in self.store.list(dish_id="soup")], [a.id, c.id])
        self.assertEqual([o.id for o in self.store.list(table_number=3, dish_id="soup")], [a.id])
        self.assertEqual(self.store.list(table_number=42), [])

    def test_get_unknown_or_deleted_raises_not_found(self):
        order = self.store.create(4, SOUP)
        self.store.delete(order.id)
        with self.assertRaises(NotFound):
            self.store.get(order.id)
        with self.assertRaises(NotFound):
            self.store.get(12345)

    # ------------------------
    # delete / purge
    # ------------------------
    def test_second_delete_raises_not_found(self):
        order = self.store.create(4, SOUP)
        deleted = self.store.delete(order.id)
        self.assertEqual(deleted.status, OrderStatus.DELETED)

        with self.assertRaises(NotFound) as ctx:
            self.store.delete(order.id)
        self.assertEqual(ctx.exception.order_id, order.id)
        self.assertNotIn(order.id, [o.id for o in self.store.list()])

    def test_purge_removes_deleted_orders_not_kept(self):
        kept = self.store.create(1, SOUP)
        dropped = self.store.create(2, SOUP)
        live = self.store.create(3, SOUP)
        self.store.delete(kept.id)
        self.store.delete(dropped.id)

        self.assertEqual(self.store.purge_deleted(keep={kept.id}), 1)
        self.assertEqual(len(self.store), 2)
        self.assertEqual([o.id for o in self.store.list()], [live.id])
        # ids are never reused after a purge
        self.assertGreater(self.store.create(4, SOUP).id, live.id)

    # ------------------------
    # concurrency
    # ------------------------
    def test_concurrent_creates_get_unique_ids_and_consistent_snapshots(self):
        workers, per_worker = 8, 25
        start = threading.Barrier(workers + 1)
        snapshots = []

        def create_many(table):
            start.wait()
            for _ in range(per_worker):
                self.store.create(table, SOUP)

        def observe():
            start.wait()
            for _ in range(50):
                snapshots.append([o.id for o in self.store.list()])

        threads = [threading.Thread(target=create_many, args=(t + 1,)) for t in range(workers)]
        threads.append(threading.Thread(target=observe))
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        final = [o.id for o in self.store.list()]
        self.assertEqual(len(final), workers * per_worker)
        self.assertEqual(len(set(final)), len(final))
        self.assertEqual(final, sorted(final))
        for snapshot in snapshots:
            self.assertEqual(snapshot, sorted(snapshot))
            self.assertEqual(len(snapshot), len(set(snapshot)))
