"""
fluentdb - 链式查询构建器演示

演示内容：
- 链式条件（where / or_where / where_in / where_json_contains）
- JSON 列自动编解码
- 关联预加载（relation 模式和 query 模式）
- 写操作与最近结果（insert / update / upsert / upsert_handle）
"""

import logging
import os
import sys

# 添加父目录到路径
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fluentdb import SqliteExecutor, SqliteConnectorOptions, table


SCHEMA = """
CREATE TABLE wp_posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    status TEXT,
    cat_id INTEGER,
    handle TEXT,
    data TEXT,
    updated_at TEXT
);
CREATE TABLE wp_categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    data TEXT,
    updated_at TEXT
);
"""


def create_executor() -> SqliteExecutor:
    executor = SqliteExecutor(':memory:', SqliteConnectorOptions(table_prefix='wp_'))
    executor.execute_script(SCHEMA)
    return executor


def demo_basic_queries(executor: SqliteExecutor) -> None:
    """演示基础查询"""
    print("\n" + "=" * 60)
    print("1. 基础查询")
    print("=" * 60)

    posts = table(executor, 'posts')
    posts.insert({'title': '草稿一', 'status': 'draft', 'data': {'tags': ['news']}})
    posts.insert({'title': '已归档', 'status': 'archived', 'data': {'tags': ['hero']}})
    posts.insert({'title': '已发布', 'status': 'published'})

    query = posts.where({'status': 'draft'}).or_where({'status': 'archived'}).order_by('id', 'DESC')
    sql, params = query.to_sql()
    print(f"SQL: {sql}")
    print(f"参数: {params}")
    for row in query.get_json():
        print(f"  {row['id']}: {row['title']} -> {row['data']}")

    heroes = posts.where_json_contains('data', {'tags': ['hero']}).get()
    print(f"包含 hero 标签: {[row['title'] for row in heroes]}")


def demo_relations(executor: SqliteExecutor) -> None:
    """演示关联预加载"""
    print("\n" + "=" * 60)
    print("2. 关联预加载")
    print("=" * 60)

    categories = table(executor, 'categories')
    news = categories.insert({'name': '新闻', 'data': {'color': 'red'}})
    table(executor, 'posts').where_id(1).update({'cat_id': news.id})

    rows = (
        table(executor, 'posts')
        .with_('category', {'table': 'categories', 'type': 'one',
                            'local_key': 'cat_id', 'foreign_key': 'id'})
        .with_('all_categories', {'mode': 'query', 'table': 'categories',
                                  'type': 'many', 'columns': 'id, name'})
        .order_by('id')
        .get_json()
    )
    for row in rows:
        category = row['category']['name'] if row['category'] else None
        print(f"  {row['title']}: 分类={category}, 全部分类数={len(row['all_categories'])}")


def demo_writes(executor: SqliteExecutor) -> None:
    """演示写操作与最近结果"""
    print("\n" + "=" * 60)
    print("3. 写操作")
    print("=" * 60)

    pages = table(executor, 'posts')
    pages.upsert_handle({'title': '首页', 'data': {'blocks': 1}}, 'home')
    print(f"upsert_handle 插入: id={pages.id()}, success={pages.success()}")

    pages.upsert_handle({'data': {'blocks': 2}}, 'home')
    print(f"upsert_handle 更新: {pages.json()['data']}")

    result = pages.upsert({'title': '关于'}, {'handle': 'about'})
    print(f"upsert: id={result.id}, row={result.json()}")

    failed = pages.insert({'status': 'draft'})  # title 不能为空
    print(f"插入失败: success={failed.success}, id={failed.id}")

    outcome = pages.where('status', 'archived').delete()
    print(f"删除归档: success={outcome.success}, rowcount={outcome.rowcount}")


def main():
    """主演示函数"""
    logging.basicConfig(level=logging.INFO)

    with create_executor() as executor:
        demo_basic_queries(executor)
        demo_relations(executor)
        demo_writes(executor)

    print("\n" + "=" * 60)
    print("演示完成")
    print("=" * 60)


if __name__ == '__main__':
    main()
