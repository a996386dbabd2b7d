"""
Classes, enrollment, attendance, marks and performance over HTTP
"""
import pytest
from httpx import AsyncClient

from conftest import make_student

API = '/api/v1'
MONDAY = '2025-06-02'
SUNDAY = '2025-06-01'


class TestRoleGates:

    @pytest.mark.asyncio
    async def test_student_cannot_record_attendance(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/classes/{campus.class_id}/attendance',
            json={'date': MONDAY, 'records': [{'student_id': campus.s1.student_id, 'status': 'present'}]},
            headers=campus.s1.headers,
        )

        assert response.status_code == 403
        assert response.json()['code'] == 'FORBIDDEN'

    @pytest.mark.asyncio
    async def test_teacher_cannot_open_department_view(self, client: AsyncClient, campus):
        response = await client.get(f'{API}/performance/department', headers=campus.teacher.headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_no_token(self, client: AsyncClient, campus):
        response = await client.get(f'{API}/classes/mine')

        assert response.status_code == 401


class TestEnrollmentFlow:

    @pytest.mark.asyncio
    async def test_join_then_approve(self, client: AsyncClient, db_session, campus):
        newcomer = await make_student(db_session, 'R010', name='Esha')
        await db_session.commit()

        available = await client.get(f'{API}/classes', headers=newcomer.headers)
        assert campus.class_id in {c['id'] for c in available.json()['classes']}

        joined = await client.post(f'{API}/classes/{campus.class_id}/join', headers=newcomer.headers)
        assert joined.status_code == 201
        enrollment_id = joined.json()['enrollment']['id']
        assert joined.json()['enrollment']['status'] == 'pending'

        again = await client.post(f'{API}/classes/{campus.class_id}/join', headers=newcomer.headers)
        assert again.status_code == 409

        requests = await client.get(f'{API}/enrollments/requests', headers=campus.teacher.headers)
        assert enrollment_id in {r['id'] for r in requests.json()['requests']}

        approved = await client.post(f'{API}/enrollments/{enrollment_id}/approve', headers=campus.teacher.headers)
        assert approved.status_code == 200
        assert approved.json()['enrollment']['status'] == 'approved'

        # already decided: indistinguishable from a missing request
        twice = await client.post(f'{API}/enrollments/{enrollment_id}/reject', headers=campus.teacher.headers)
        assert twice.status_code == 404
        assert twice.json()['code'] == 'NOT_FOUND'

        mine = await client.get(f'{API}/enrollments/mine', headers=newcomer.headers)
        assert [c['class_id'] for c in mine.json()['classes']] == [campus.class_id]

    @pytest.mark.asyncio
    async def test_other_department_hod_gets_not_found(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/enrollments/{campus.s4.enrollment_id}/approve', headers=campus.other_hod.headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_department_hod_rejects(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/enrollments/{campus.s4.enrollment_id}/reject', headers=campus.hod.headers
        )

        assert response.status_code == 200
        assert response.json()['enrollment']['status'] == 'rejected'


class TestAttendanceApi:

    @pytest.mark.asyncio
    async def test_record_and_read_session(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/classes/{campus.class_id}/attendance',
            json={'date': MONDAY, 'records': [
                {'student_id': campus.s1.student_id, 'status': 'present'},
                {'student_id': campus.s2.student_id, 'status': 'absent'},
            ]},
            headers=campus.teacher.headers,
        )

        assert response.status_code == 201
        assert response.json() == {'message': 'Attendance saved.', 'count': 2}

        session = await client.get(
            f'{API}/classes/{campus.class_id}/attendance',
            params={'date': MONDAY},
            headers=campus.teacher.headers,
        )
        assert [r['student_name'] for r in session.json()['records']] == ['Asha', 'Bala']

        summary = await client.get(
            f'{API}/classes/{campus.class_id}/attendance/summary', headers=campus.hod.headers
        )
        rates = {r['roll_no']: r['rate'] for r in summary.json()['summary']}
        assert rates == {'R001': 100.0, 'R002': 0.0, 'R003': 0.0}

    @pytest.mark.asyncio
    async def test_sunday_rejected(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/classes/{campus.class_id}/attendance',
            json={'date': SUNDAY, 'records': [{'student_id': campus.s1.student_id, 'status': 'present'}]},
            headers=campus.teacher.headers,
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION'

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/classes/{campus.class_id}/attendance',
            json={'date': MONDAY, 'records': [{'student_id': campus.s1.student_id, 'status': 'late'}]},
            headers=campus.teacher.headers,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_student_reads_own_history(self, client: AsyncClient, campus):
        await client.post(
            f'{API}/attendance',
            json={'class_id': campus.class_id, 'student_id': campus.s3.student_id,
                  'date': MONDAY, 'status': 'present'},
            headers=campus.teacher.headers,
        )

        response = await client.get(f'{API}/attendance/me', headers=campus.s3.headers)

        assert response.status_code == 200
        assert [(r['date'], r['status']) for r in response.json()['records']] == [(MONDAY, 'present')]


class TestMarksApi:

    @pytest.mark.asyncio
    async def test_record_then_update(self, client: AsyncClient, campus):
        created = await client.post(
            f'{API}/classes/{campus.class_id}/marks',
            json={'student_id': campus.s1.student_id, 'subject_id': campus.math_id,
                  'score': 40, 'total_marks': 50, 'exam_type': 'Internal', 'year': 2025},
            headers=campus.teacher.headers,
        )
        assert created.status_code == 201
        mark = created.json()['mark']
        assert mark['exam_type'] == 'internal'
        assert mark['percentage'] == 80.0

        updated = await client.put(
            f'{API}/marks/{mark["id"]}', json={'score': 45}, headers=campus.teacher.headers
        )
        assert updated.status_code == 200
        assert updated.json()['mark']['score'] == 45

        foreign = await client.put(
            f'{API}/marks/{mark["id"]}', json={'score': 10}, headers=campus.other_teacher.headers
        )
        assert foreign.status_code == 404

    @pytest.mark.asyncio
    async def test_score_above_total(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/marks',
            json={'student_id': campus.s1.student_id, 'subject_id': campus.math_id,
                  'score': 85, 'total_marks': 80, 'exam_type': 'final', 'year': 2025},
            headers=campus.teacher.headers,
        )

        assert response.status_code == 400

        listed = await client.get(f'{API}/marks', headers=campus.admin.headers)
        assert listed.json()['marks'] == []

    @pytest.mark.asyncio
    async def test_infinite_score_rejected(self, client: AsyncClient, campus):
        body = (
            '{"student_id": "' + campus.s1.student_id + '", "subject_id": "' + campus.math_id + '", '
            '"score": Infinity, "total_marks": Infinity, "exam_type": "final", "year": 2025}'
        )
        response = await client.post(
            f'{API}/marks', content=body,
            headers={**campus.teacher.headers, 'Content-Type': 'application/json'},
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION'

        listed = await client.get(f'{API}/marks', headers=campus.admin.headers)
        assert listed.json()['marks'] == []

        performance = await client.get(f'{API}/performance/class/{campus.class_id}', headers=campus.teacher.headers)
        assert performance.status_code == 200


class TestPerformanceApi:

    @pytest.mark.asyncio
    async def test_student_and_class_views(self, client: AsyncClient, campus):
        for student, score in ((campus.s1, 70), (campus.s2, 90)):
            await client.post(
                f'{API}/classes/{campus.class_id}/marks',
                json={'student_id': student.student_id, 'subject_id': campus.math_id,
                      'score': score, 'exam_type': 'midterm', 'year': 2025},
                headers=campus.teacher.headers,
            )

        me = await client.get(f'{API}/performance/me', headers=campus.s1.headers)
        assert me.status_code == 200
        assert me.json()['avg_score'] == 70.0
        assert (me.json()['rank'], me.json()['total_students']) == (2, 2)

        class_view = await client.get(f'{API}/performance/class/{campus.class_id}', headers=campus.hod.headers)
        assert [s['roll_no'] for s in class_view.json()['students']] == ['R002', 'R001', 'R003']

        trend = await client.get(f'{API}/performance/me/trend', headers=campus.s1.headers)
        assert trend.json()['trend'] == [{'exam_type': 'midterm', 'avg_score': 70.0}]

    @pytest.mark.asyncio
    async def test_department_stats(self, client: AsyncClient, campus):
        response = await client.get(f'{API}/classes/department/stats', headers=campus.hod.headers)

        assert response.status_code == 200
        assert response.json() == {
            'total_classes': 1,
            'total_teachers': 2,
            'total_students': 3,
            'pending_requests': 1,
        }


class TestAnnouncementsApi:

    @pytest.mark.asyncio
    async def test_owner_posts_and_students_read(self, client: AsyncClient, campus):
        posted = await client.post(
            f'{API}/classes/{campus.class_id}/announcements',
            json={'title': 'Quiz on Friday', 'body': 'Chapters 1-3'},
            headers=campus.teacher.headers,
        )
        assert posted.status_code == 201

        visible = await client.get(f'{API}/announcements', headers=campus.s1.headers)
        assert [a['title'] for a in visible.json()['announcements']] == ['Quiz on Friday']

        hidden = await client.get(f'{API}/announcements', headers=campus.s4.headers)
        assert hidden.json()['announcements'] == []

    @pytest.mark.asyncio
    async def test_hod_cannot_post(self, client: AsyncClient, campus):
        response = await client.post(
            f'{API}/classes/{campus.class_id}/announcements',
            json={'title': 'Notice', 'body': 'Text'},
            headers=campus.hod.headers,
        )

        assert response.status_code == 403


class TestHealth:

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient):
        response = await client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    @pytest.mark.asyncio
    async def test_versioned_liveness(self, client: AsyncClient):
        response = await client.get(f'{API}/health')

        assert response.status_code == 200
